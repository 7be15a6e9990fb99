import io

import pytest

from imapwire.status import StatusError, StatusResp, StatusRespCode, StatusRespType
from imapwire.writer import RawString, Writer


def render(resp):
    buffer = io.BytesIO()
    resp.write_to(Writer(buffer))
    return buffer.getvalue().decode("utf-8")


@pytest.mark.parametrize(
    "resp, expected",
    [
        (StatusResp(tag="*", type=StatusRespType.OK), "* OK \r\n"),
        (
            StatusResp(tag="*", type=StatusRespType.OK, info="LOGIN completed"),
            "* OK LOGIN completed\r\n",
        ),
        (
            StatusResp(tag="42", type=StatusRespType.BAD, info="Invalid arguments"),
            "42 BAD Invalid arguments\r\n",
        ),
        (
            StatusResp(
                tag="a001", type=StatusRespType.OK, code="READ-ONLY",
                info="EXAMINE completed",
            ),
            "a001 OK [READ-ONLY] EXAMINE completed\r\n",
        ),
        (
            StatusResp(
                tag="*", type=StatusRespType.OK, code="CAPABILITY",
                arguments=[RawString("IMAP4rev1")], info="IMAP4rev1 service ready",
            ),
            "* OK [CAPABILITY IMAP4rev1] IMAP4rev1 service ready\r\n",
        ),
    ],
)
def test_write_to(resp, expected):
    assert render(resp) == expected


def test_empty_tag_defaults_to_star():
    resp = StatusResp(type=StatusRespType.BYE, info="Closing connection")
    assert render(resp) == "* BYE Closing connection\r\n"


def test_enum_code_written_by_value():
    resp = StatusResp(
        tag="a2", type=StatusRespType.NO, code=StatusRespCode.TRY_CREATE, info="nope"
    )
    assert render(resp) == "a2 NO [TRYCREATE] nope\r\n"


def test_check_ok_and_preauth():
    assert StatusResp(type=StatusRespType.OK, info="All green").check() is None
    assert StatusResp(type=StatusRespType.PREAUTH, info="hi").check() is None


def test_check_bad():
    resp = StatusResp(type=StatusRespType.BAD, info="BAD!")
    with pytest.raises(StatusError) as info:
        resp.check()
    assert str(info.value) == "BAD!"
    assert info.value.response is resp


def test_check_no():
    with pytest.raises(StatusError, match="^NO!$"):
        StatusResp(type=StatusRespType.NO, info="NO!").check()


def test_check_plain_string_type():
    with pytest.raises(StatusError, match="^denied$"):
        StatusResp(type="NO", info="denied").check()