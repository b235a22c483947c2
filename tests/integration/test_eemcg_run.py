from __future__ import annotations

from pathlib import Path

from openpyxl import load_workbook

from dttools.cli.__main__ import eemcg_main


def _input(make_workbook, temp_workdir: Path) -> Path:
    voc_row1 = ["时间", "邻二甲苯", None, None, None, None, None, None, "间、对-二甲苯"]
    voc_row3 = ["code", "a25004", None, None, None, None, None, None, "a24514"]
    voc_row4 = ["2024-03-15 08:00", 0.5, None, None, None, None, None, None, -999]
    return make_workbook(
        temp_workdir / "data" / "voc.xlsx",
        {
            "说明": [["说明(勿删)"], [None], ["甲烷(ppm)"]],
            "甲烷非甲烷分析仪": [
                ["时间", "甲烷", "非甲烷总烃", "总烃(ppbvC)"],
                [None, "ppm", "ppm", "ppbC"],
                ["code", "a05002(ppm)", "a24087", "a24088"],
                ["2024-03-15 08:00", 1.2, "0.3(C)", 2],
            ],
            "VOCs在线监测仪": [voc_row1, [None], voc_row3, voc_row4],
        },
    )


def test_eemcg_end_to_end(temp_workdir: Path, make_workbook, capsys):
    src = _input(make_workbook, temp_workdir)

    assert eemcg_main([str(src)]) == 0
    out = capsys.readouterr().out
    assert "INFO sheet renamed: '甲烷非甲烷分析仪' -> 'NMHC监测仪'" in out
    assert "renamed_sheets=2" in out
    assert "edited_cells=6" in out

    wb = load_workbook(temp_workdir / "data" / "processed_voc.xlsx")
    assert wb.sheetnames == ["说明", "NMHC监测仪", "VOCs监测仪"]

    nmhc = wb["NMHC监测仪"]
    assert nmhc["D1"].value == "总烃(ppbC)"
    assert nmhc["B3"].value == "a05002"
    assert nmhc["B3"].fill.start_color.rgb == "FFFF0000"
    assert nmhc["C4"].value == "0.3"
    assert nmhc["C4"].fill.start_color.rgb == "FFFF0000"
    assert nmhc["B4"].value == 1.2
    assert nmhc["D4"].value == 2
    assert nmhc["D1"].fill.fill_type is None

    voc = wb["VOCs监测仪"]
    assert voc["B1"].value == "邻-二甲苯"
    assert voc["I1"].value == "间/对-二甲苯"
    assert voc["I4"].value == "-999#a24041"
    assert voc["B4"].value == 0.5

    # 対象外のシートはそのまま
    other = wb["说明"]
    assert other["A1"].value == "说明(勿删)"
    assert other["A3"].value == "甲烷(ppm)"


def test_eemcg_input_keeps_original_names(temp_workdir: Path, make_workbook):
    src = _input(make_workbook, temp_workdir)
    assert eemcg_main([str(src)]) == 0
    assert load_workbook(src).sheetnames == ["说明", "甲烷非甲烷分析仪", "VOCs在线监测仪"]


def test_eemcg_missing_sheets_writes_nothing(temp_workdir: Path, make_workbook, capsys):
    src = make_workbook(temp_workdir / "data" / "voc.xlsx", {"Sheet1": [["时间"]]})
    assert eemcg_main([str(src)]) == 1
    assert "ERROR format: none of the expected sheets" in capsys.readouterr().out
    assert not (temp_workdir / "data" / "processed_voc.xlsx").exists()


def test_eemcg_missing_located_cell_writes_nothing(temp_workdir: Path, make_workbook, capsys):
    src = make_workbook(temp_workdir / "data" / "voc.xlsx", {"甲烷非甲烷分析仪": [["时间", "甲烷"]]})
    assert eemcg_main([str(src)]) == 1
    assert "ERROR format:" in capsys.readouterr().out
    assert not (temp_workdir / "data" / "processed_voc.xlsx").exists()
