import pytest

from tb_reconcile.accounts import format_description, split_account_cell


def _parse(text: str) -> tuple[str, str]:
    cell = split_account_cell(text)
    return cell.account_number, format_description(cell.description)


@pytest.mark.parametrize(
    ("text", "account", "description"),
    [
        # Between the last two numbers
        ("10000 - PNC - Money Market 11100", "11100", "PNC - Money Market"),
        ("51000 Cost 51400", "51400", "Cost"),
        ("51000 Cost of Good sold New 51400", "51400", "Cost Of Good Sold New"),
        # Text after the last number wins
        ("41000 Recurring Revenue 41050 revenue new", "41050", "Revenue New"),
        ("10000 cash 11000 - PNC", "11000", "PNC"),
        # Only text before the number
        ("Cash 1000", "1000", "Cash"),
        ("operating account - 2010", "2010", "Operating Account"),
        # Tabs/whitespace are trimmed
        ("\t 4000\tSales  ", "4000", "Sales"),
    ],
)
def test_account_number_and_derived_description(text, account, description):
    assert _parse(text) == (account, description)


def test_last_digit_run_wins():
    assert split_account_cell("100 200 300").account_number == "300"


@pytest.mark.parametrize(
    "text",
    [
        "Rounding Gain/Loss",
        "12 Misc",  # too short
        "12345678901 Long",  # 11 digits is not an account number
    ],
)
def test_no_usable_digit_run_gives_empty_account(text):
    assert split_account_cell(text).account_number == ""


def test_rounding_description_uses_whole_cell():
    cell = split_account_cell("Rounding Gain/Loss")
    assert format_description(cell.description) == "Rounding Gain - Loss"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("cost of good sold", "Cost Of Good Sold"),
        ("ACME llc", "Acme LLC"),
        ("irs penalties", "IRS Penalties"),
        ("Vat payable", "VAT Payable"),
        ("a -- b / c", "A - B - C"),
        ("pnc  —  money   market", "PNC - Money Market"),
        ("(pnc) sweep", "(PNC) Sweep"),
        ("- trailing /", "Trailing"),
    ],
)
def test_format_description(raw, expected):
    assert format_description(raw) == expected


def test_format_description_with_custom_abbreviations():
    assert format_description("cpa fees", {"CPA"}) == "CPA Fees"
    # Defaults are not implied when an explicit set is given
    assert format_description("pnc fees", {"CPA"}) == "Pnc Fees"
