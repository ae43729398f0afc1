import grp
import pwd

import pytest

from swtpmkit.options import (
    OptionDesc,
    OptionError,
    OptionType,
    OptionValue,
    UINT_MAX,
    parse_options,
)

DESCS = [
    OptionDesc("dir", OptionType.STRING),
    OptionDesc("level", OptionType.INT),
    OptionDesc("port", OptionType.UINT),
    OptionDesc("truncate", OptionType.BOOLEAN),
    OptionDesc("mode", OptionType.MODE_T),
    OptionDesc("uid", OptionType.UID_T),
    OptionDesc("gid", OptionType.GID_T),
    OptionDesc("key", OptionType.STRING),
    OptionDesc("keyfile", OptionType.STRING),
]


def test_string_and_mode():
    ovs = parse_options("dir=/tmp/state,mode=0640", DESCS)
    assert ovs.get_string("dir") == "/tmp/state"
    assert ovs.get_mode("mode", 0) == 0o640
    assert len(ovs) == 2


def test_values_keep_order_and_types():
    ovs = parse_options("level=3,dir=a", DESCS)
    assert list(ovs) == [
        OptionValue("level", OptionType.INT, 3),
        OptionValue("dir", OptionType.STRING, "a"),
    ]


def test_bare_name_means_true():
    ovs = parse_options("truncate", DESCS)
    assert ovs.get_bool("truncate", False) is True


@pytest.mark.parametrize(
    "text, expected",
    [("true", True), ("TRUE", True), ("1", True), ("false", False), ("yes", False)],
)
def test_boolean_values(text, expected):
    ovs = parse_options(f"truncate={text}", DESCS)
    assert ovs.get_bool("truncate", not expected) is expected


def test_empty_items_are_skipped():
    ovs = parse_options(",,dir=a,,", DESCS)
    assert ovs.get_string("dir") == "a"
    assert len(ovs) == 1


def test_empty_string_gives_no_options():
    ovs = parse_options("", DESCS)
    assert len(ovs) == 0
    assert ovs.get_string("dir", "fallback") == "fallback"


def test_unknown_option():
    with pytest.raises(OptionError, match="Unknown option 'foo=1'"):
        parse_options("dir=a,foo=1", DESCS)


def test_empty_value_is_unknown():
    with pytest.raises(OptionError, match="Unknown option 'dir='"):
        parse_options("dir=", DESCS)


def test_longer_name_with_shared_prefix():
    ovs = parse_options("keyfile=x,key=y", DESCS)
    assert ovs.get_string("keyfile") == "x"
    assert ovs.get_string("key") == "y"


def test_int_with_leading_space_and_sign():
    ovs = parse_options("level= -5", DESCS)
    assert ovs.get_int("level", 0) == -5


@pytest.mark.parametrize("text", ["abc", "12x", "1_0", "5 "])
def test_invalid_int(text):
    with pytest.raises(OptionError, match="invalid number"):
        parse_options(f"level={text}", DESCS)


def test_int_out_of_range():
    with pytest.raises(OptionError, match="outside valid range"):
        parse_options("level=2147483648", DESCS)


def test_uint_values():
    ovs = parse_options("port=65535", DESCS)
    assert ovs.get_uint("port", 0) == 65535


@pytest.mark.parametrize("text", ["-1", "4294967296"])
def test_uint_out_of_range(text):
    with pytest.raises(OptionError, match="outside valid range"):
        parse_options(f"port={text}", DESCS)


@pytest.mark.parametrize("text", ["0778", "abc"])
def test_invalid_mode(text):
    with pytest.raises(OptionError, match="invalid mode type"):
        parse_options(f"mode={text}", DESCS)


def test_mode_too_large():
    with pytest.raises(OptionError, match="mode 1000 is invalid"):
        parse_options("mode=1000", DESCS)


def test_numeric_uid_and_gid():
    ovs = parse_options("uid=1000,gid=1001", DESCS)
    assert ovs.get_uid("uid", 0) == 1000
    assert ovs.get_gid("gid", 0) == 1001


def test_uid_and_gid_by_name():
    ovs = parse_options("uid=root,gid=" + grp.getgrgid(0).gr_name, DESCS)
    assert ovs.get_uid("uid", 99) == pwd.getpwnam("root").pw_uid
    assert ovs.get_gid("gid", 99) == 0


def test_unknown_user():
    with pytest.raises(OptionError, match="User 'no-such-user-xyz' does not exist"):
        parse_options("uid=no-such-user-xyz", DESCS)


def test_unknown_group():
    with pytest.raises(OptionError, match="Group 'no-such-group-xyz' does not exist"):
        parse_options("gid=no-such-group-xyz", DESCS)


def test_uid_out_of_range():
    with pytest.raises(OptionError, match="uid -1 outside valid range"):
        parse_options("uid=-1", DESCS)


def test_missing_options_give_defaults():
    ovs = parse_options("dir=a", DESCS)
    assert ovs.get_int("level", 7) == 7
    assert ovs.get_uint("port", 2321) == 2321
    assert ovs.get_bool("truncate", True) is True
    assert ovs.get_mode("mode", 0o600) == 0o600


def test_type_mismatch_sentinels():
    ovs = parse_options("dir=a,level=3", DESCS)
    assert ovs.get_int("dir", 5) == -1
    assert ovs.get_uint("dir", 5) == UINT_MAX
    assert ovs.get_bool("dir", True) is False
    assert ovs.get_mode("dir", 5) == UINT_MAX
    assert ovs.get_uid("dir", 5) == UINT_MAX
    assert ovs.get_gid("dir", 5) == UINT_MAX
    assert ovs.get_string("level", "x") is None


def test_first_occurrence_wins():
    ovs = parse_options("dir=first,dir=second", DESCS)
    assert ovs.get_string("dir") == "first"
    assert len(ovs) == 2


def test_contains():
    ovs = parse_options("truncate", DESCS)
    assert "truncate" in ovs
    assert "dir" not in ovs