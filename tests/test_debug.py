import io

from swtpmkit.debug import hex_dump_lines, print_all


def test_single_line_format():
    assert hex_dump_lines(" ", b"\x01\xab") == [" 01 AB "]


def test_empty_data_gives_indentation_only():
    assert hex_dump_lines(">>", b"") == [">>"]


def test_lines_hold_sixteen_bytes():
    data = bytes(range(40))
    lines = hex_dump_lines("  ", data)
    assert len(lines) == 3
    assert all(line.startswith("  ") for line in lines)
    assert [len(line[2:].split()) for line in lines] == [16, 16, 8]


def test_exactly_sixteen_bytes_is_one_line():
    assert len(hex_dump_lines("", bytes(16))) == 1


def test_dump_decodes_back_to_data():
    data = bytes(range(200, 256)) + b"swtpm"
    lines = hex_dump_lines("\t", data)
    decoded = bytes.fromhex("".join(line.strip() for line in lines))
    assert decoded == data


def test_print_all_null():
    out = io.StringIO()
    print_all("label:", " ", None, out)
    assert out.getvalue() == "label: null\n"


def test_print_all_writes_header_and_dump():
    out = io.StringIO()
    data = bytes(range(20))
    print_all("X:", " ", data, out)
    lines = out.getvalue().splitlines()
    assert lines[0] == "X: length 20"
    assert lines[1:] == hex_dump_lines(" ", data)
    assert out.getvalue().endswith("\n")