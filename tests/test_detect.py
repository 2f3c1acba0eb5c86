from __future__ import annotations

import pytest

from marketplace_recon.errors import (
    NoFileSelected,
    ReportImportError,
    ReportParseError,
    RequiredSheetMissing,
    UnsupportedFileType,
)
from marketplace_recon.ingest.detect import detect, extract_report
from marketplace_recon.models import Platform, ReportFile
from tests.helpers.reports import amazon_csv, amazon_row, flipkart_order, flipkart_workbook


def _amazon_file(name: str = "report.csv", *, preamble_lines: int = 11) -> ReportFile:
    text = amazon_csv(
        [amazon_row(type="order", sku="A", quantity="1", total="10")],
        preamble_lines=preamble_lines,
    )
    return ReportFile(name=name, content=text.encode("utf-8"))


def _flipkart_file(name: str = "pnl.xlsx") -> ReportFile:
    order = flipkart_order(
        **{"Order ID": "OD1", "Order Status": "delivered", "SKU Name": "A", "Gross Units": 1}
    )
    return ReportFile(name=name, content=flipkart_workbook([order]))


def test_no_file_selected():
    with pytest.raises(NoFileSelected, match="No file selected"):
        detect(None)


def test_spreadsheet_extension_routes_to_flipkart():
    assert detect(_flipkart_file()).platform is Platform.FLIPKART


def test_zip_signature_routes_to_flipkart_regardless_of_name():
    assert detect(_flipkart_file(name="download")).platform is Platform.FLIPKART


def test_text_routes_to_amazon():
    assert detect(_amazon_file()).platform is Platform.AMAZON
    assert detect(_amazon_file(name="report.txt")).platform is Platform.AMAZON


def test_binary_non_workbook_is_unsupported():
    blob = ReportFile(name="scan.pdf", content=b"%PDF-1.7\x00\x01\x02\xff\xfe")

    with pytest.raises(UnsupportedFileType, match="Unsupported file type"):
        detect(blob)


def test_extract_report_runs_the_selected_parser():
    assert extract_report(_amazon_file()).platform is Platform.AMAZON
    flipkart = extract_report(_flipkart_file())
    assert flipkart.platform is Platform.FLIPKART
    assert len(flipkart.transactions) == 1


def test_extract_report_preamble_from_argument_and_env(monkeypatch):
    short = _amazon_file(preamble_lines=5)

    assert len(extract_report(short, amazon_preamble_lines=5).transactions) == 1

    monkeypatch.setenv("MR_AMAZON_PREAMBLE_LINES", "5")
    assert len(extract_report(short).transactions) == 1


def test_extract_report_workbook_without_orders_sheet():
    content = flipkart_workbook(None, [{"SKU ID": "A", "Cost Price": 10}])

    with pytest.raises(RequiredSheetMissing):
        extract_report(ReportFile(name="pnl.xlsx", content=content))


def test_extract_report_without_file():
    with pytest.raises(NoFileSelected):
        extract_report(None)


def test_negative_preamble_argument_is_a_rejected_report():
    with pytest.raises(ReportParseError) as excinfo:
        extract_report(_amazon_file(), amazon_preamble_lines=-1)

    assert isinstance(excinfo.value, ReportImportError)


@pytest.mark.parametrize("env_val", ["-3", "eleven"])
def test_unusable_preamble_env_falls_back_to_default(monkeypatch, env_val):
    monkeypatch.setenv("MR_AMAZON_PREAMBLE_LINES", env_val)

    assert len(extract_report(_amazon_file()).transactions) == 1
