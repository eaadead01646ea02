from io import BytesIO
from zipfile import ZipFile

from pydantic_models.config.output_config import OutputConfig
from pydantic_models.data.timecard_request import TimecardRequest
from timecards.modules.output_bundler import XLSX_MEDIA_TYPE, ZIP_MEDIA_TYPE, OutputBundler


def test_file_stem_sanitizes_employee(request_payload):
    request_payload["employee_name"] = "Anna-Lena O'Brien / Nacht"
    request = TimecardRequest.model_validate(request_payload)
    assert OutputBundler().file_stem(request) == "Timecard_Anna-Lena_OBrien__Nacht_2025_PP01"


def test_custom_file_stem(request_payload):
    naming = OutputConfig(file_stem="{year}-{pay_period}-{employee}")
    assert OutputBundler(naming).file_stem(TimecardRequest.model_validate(request_payload)) == "2025-1-Max_Muster"


def test_bundle_variants(tmp_path):
    workbook = tmp_path / "Timecard.xlsx"
    workbook.write_bytes(b"xlsx-inhalt")
    pdf = tmp_path / "Timecard.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    bundler = OutputBundler()

    single = bundler.bundle(workbook, None, tmp_path)
    assert (single.filename, single.media_type, single.content) == ("Timecard.xlsx", XLSX_MEDIA_TYPE, b"xlsx-inhalt")

    both = bundler.bundle(workbook, pdf, tmp_path)
    assert (both.filename, both.media_type) == ("Timecard.zip", ZIP_MEDIA_TYPE)
    with ZipFile(BytesIO(both.content)) as archive:
        assert archive.read("Timecard.pdf") == b"%PDF-1.4"
        assert archive.read("Timecard.xlsx") == b"xlsx-inhalt"
