import pytest
from PIL import Image

from tilemerge.sources import (
    FALLBACK,
    MAP_DEFINITIONS,
    PRIMARY,
    Placement,
    classify,
    collect_groups,
)
from pngutil import solid

UI_MAP = MAP_DEFINITIONS["ui-map"]
TERRAIN = MAP_DEFINITIONS["terrain"]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("UI_MapCity_3_-2.png", [Placement("MapCity", (2, -3), PRIMARY)]),
        ("UI_MapCity_0_0.png", [Placement("MapCity", (0, 0), PRIMARY)]),
        ("UI_MapDeep_Sea_-1_4.png", [Placement("MapDeep_Sea", (-4, 1), PRIMARY)]),
        ("UI_MapCity_None.png", [Placement("MapCity", (0, 0), FALLBACK)]),
        ("UI_MapCity_x_1.png", []),
        ("UI_Other_1_1.png", []),
        ("UI_MapCity_1_1.jpg", []),
    ],
)
def test_classify_ui_map(name, expected):
    assert classify(UI_MAP, name) == expected


@pytest.mark.parametrize(
    "name,expected",
    [
        ("BigWorldTerrain_5_7.bin_Desert.png", [Placement("Desert", (5, -7), PRIMARY)]),
        ("BigWorldTerrain_-3_-1.bin_Snow_Hi.png", [Placement("Snow_Hi", (-3, 1), PRIMARY)]),
        ("BigWorldTerrain_None.bin_Desert.png", []),
    ],
)
def test_classify_terrain(name, expected):
    assert classify(TERRAIN, name) == expected


def _save(directory, name, size=4, color=(255, 0, 0, 255)):
    solid(size, size, color).save(directory / name)


def test_collect_groups_builds_grids(tmp_path):
    _save(tmp_path, "UI_MapA_0_0.png")
    _save(tmp_path, "UI_MapA_1_0.png")
    _save(tmp_path, "UI_MapA_None.png")
    _save(tmp_path, "UI_MapB_2_2.png", size=8)
    _save(tmp_path, "UI_MapB_junk.png")
    (tmp_path / "notes.txt").write_text("ignored")

    groups = collect_groups(UI_MAP, tmp_path)

    assert list(groups) == ["MapA", "MapB"]
    a, b = groups["MapA"], groups["MapB"]
    assert len(a) == 2
    assert a.entry(0, 0).count == 1
    assert a.entry(0, -1).count == 1
    assert a.fallback.count == 1
    assert a.bounding_box() == ((0, -1), (0, 0))
    assert b.unit_size() == 8
    assert b.fallback is None


def test_collect_groups_shares_one_handle_per_file(tmp_path):
    _save(tmp_path, "UI_MapA_None.png")
    _save(tmp_path, "UI_MapA_0_0.png")
    groups = collect_groups(UI_MAP, tmp_path)
    fb = groups["MapA"].fallback
    assert groups["MapA"].get(5, 5) is fb
    groups["MapA"].dispose()
    assert fb.disposed


def test_collect_groups_skips_unreadable_files(tmp_path, capsys):
    (tmp_path / "UI_MapA_0_0.png").write_bytes(b"not a png")
    _save(tmp_path, "UI_MapA_1_1.png")

    groups = collect_groups(UI_MAP, tmp_path)

    assert len(groups["MapA"]) == 1
    assert "skipping" in capsys.readouterr().out


def test_collect_groups_releases_replaced_tile(tmp_path):
    # both names parse to the same cell; the later file wins
    _save(tmp_path, "UI_MapA_01_2.png", size=2)
    _save(tmp_path, "UI_MapA_1_2.png", size=4)
    opened = []

    def opener(path):
        with Image.open(path) as im:
            img = im.convert("RGBA")
        opened.append(img)
        return img

    groups = collect_groups(UI_MAP, tmp_path, opener=opener)

    grid = groups["MapA"]
    assert len(grid) == 1
    assert grid.entry(-2, -1).value is opened[1]
    assert grid.unit_size() == 4


def test_collect_groups_empty_directory(tmp_path):
    assert collect_groups(TERRAIN, tmp_path) == {}
