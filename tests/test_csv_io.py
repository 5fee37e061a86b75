import textwrap

import pytest

from sales_analytics import ParseError, parse_csv, serialize_csv


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


def test_header_defines_fields_and_values_are_trimmed():
    text = _dedent(
        """
        TOTAL , INV_DATE,NAME
          100.00 ,2022-01-01,  Acme Corp
        """
    )
    assert parse_csv(text) == [{"TOTAL": "100.00", "INV_DATE": "2022-01-01", "NAME": "Acme Corp"}]


def test_quoted_fields_with_commas_quotes_and_newlines():
    text = 'NAME,ADDRESS1,TOTAL\n"Smith, J","12 ""Old"" Rd\nUnit 4",5\n'
    assert parse_csv(text) == [
        {"NAME": "Smith, J", "ADDRESS1": '12 "Old" Rd\nUnit 4', "TOTAL": "5"}
    ]


def test_blank_lines_are_skipped_and_order_is_preserved():
    text = "\nTOTAL,NAME\n\n1,a\n   \n2,b\n\r\n3,c\n"
    assert [r["NAME"] for r in parse_csv(text)] == ["a", "b", "c"]


def test_short_rows_leave_trailing_fields_absent():
    rows = parse_csv("TOTAL,INV_DATE,NAME,TREE_DESCR\n10,2023-01-01\n")
    assert rows == [{"TOTAL": "10", "INV_DATE": "2023-01-01"}]
    assert rows[0].get("TREE_DESCR") is None


def test_fields_beyond_header_are_dropped():
    assert parse_csv("A,B\n1,2,3,4\n") == [{"A": "1", "B": "2"}]


def test_crlf_line_endings():
    assert parse_csv("A,B\r\n1,2\r\n") == [{"A": "1", "B": "2"}]


def test_leading_bom_is_ignored():
    assert parse_csv("\ufeffTOTAL,NAME\n1,a\n") == [{"TOTAL": "1", "NAME": "a"}]


@pytest.mark.parametrize("text", ["", "\n\n", "TOTAL,NAME\n"])
def test_no_data_rows(text: str):
    assert parse_csv(text) == []


def test_unterminated_quote_raises_parse_error():
    text = 'TOTAL,NAME\n1,Acme\n2,"Beta\n3,Gamma\n'
    with pytest.raises(ParseError) as excinfo:
        parse_csv(text)
    assert excinfo.value.line is not None and excinfo.value.line >= 3


def test_text_after_closing_quote_raises_parse_error():
    with pytest.raises(ParseError):
        parse_csv('A,B\n"x"y,2\n')
    with pytest.raises(ParseError):
        parse_csv('A,B\n"x"  y,2\n')


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('TOTAL,NAME\n1,"Acme"  \n', [{"TOTAL": "1", "NAME": "Acme"}]),
        ('NAME,TOTAL\n"Acme" ,2\n', [{"NAME": "Acme", "TOTAL": "2"}]),
        ('NAME,TOTAL\r\n  "Acme"\t,2\r\n', [{"NAME": "Acme", "TOTAL": "2"}]),
        ('NAME,TOTAL\n"Acme"  ', [{"NAME": "Acme"}]),
    ],
)
def test_padding_after_closing_quote_is_trimmed(text: str, expected: list[dict[str, str]]):
    assert parse_csv(text) == expected


def test_padding_trim_leaves_quoted_content_alone():
    text = 'NAME,NOTE\n"Acme ""Best"" ,Co"  ,"a ,\nb" \n12" pipe,x\n'
    assert parse_csv(text) == [
        {"NAME": 'Acme "Best" ,Co', "NOTE": "a ,\nb"},
        {"NAME": '12" pipe', "NOTE": "x"},
    ]


def test_unterminated_quote_still_raises_with_padded_fields():
    with pytest.raises(ParseError):
        parse_csv('NAME,TOTAL\n"Acme"  ,1\n"Beta,2\n')


def test_serialize_then_parse_reproduces_records():
    records = [
        {"TOTAL": "100.00", "INV_DATE": "2022-01-01", "NAME": "Acme, Inc.", "TREE_DESCR": "Coil"},
        {"TOTAL": "-3.10", "INV_DATE": "01/15/2023", "NAME": 'A "Best" Co', "TREE_DESCR": "Sheet"},
    ]
    assert parse_csv(serialize_csv(records)) == records


def test_serialize_uses_given_fieldnames_and_blanks_missing_values():
    text = serialize_csv([{"NAME": "Acme", "EXTRA": "x"}, {"TOTAL": None}], ["TOTAL", "NAME"])
    assert text == "TOTAL,NAME\n,Acme\n,\n"
