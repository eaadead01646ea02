from openpyxl import Workbook
from openpyxl.worksheet.formula import ArrayFormula

from timecards.modules.protected_cells import ProtectedCellRegistry


def test_scan_finds_formulas_only():
    ws = Workbook().active
    ws["A1"] = "=SUM(B1:B3)"
    ws["A2"] = "Text"
    ws["A3"] = 42
    ws["A4"] = ArrayFormula("A4:A4", "=SUM(B1:B3*2)")
    registry = ProtectedCellRegistry.scan(ws)
    assert registry.is_protected("A1")
    assert registry.is_protected("a4")
    assert not registry.is_protected("A2")
    assert not registry.is_protected("A3")
    assert not registry.is_protected("Z99")
    assert len(registry) == 2


def test_lookup_does_not_reinspect_cells():
    ws = Workbook().active
    ws["A1"] = "=1+1"
    registry = ProtectedCellRegistry.scan(ws)
    ws["A1"] = 5
    ws["B1"] = "=2+2"
    assert registry.is_protected("A1")
    assert not registry.is_protected("B1")


def test_literal_text_with_equals_sign_is_not_a_formula():
    ws = Workbook().active
    ws["A1"] = "=kein Formel"
    ws["A1"].data_type = "s"
    assert not ProtectedCellRegistry.scan(ws).is_protected("A1")
