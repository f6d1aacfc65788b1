import numpy as np
from PIL import Image

from tilemerge.main import main
from pngutil import solid

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)


def test_merges_each_group(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    solid(4, 4, RED).save(src / "UI_MapX_0_0.png")
    solid(4, 4, BLUE).save(src / "UI_MapX_1_1.png")
    solid(4, 4, GREEN).save(src / "UI_MapX_None.png")
    solid(2, 2, RED).save(src / "UI_MapY_0_3.png")
    out = tmp_path / "out"

    rc = main(["--mode", "ui-map", "--input", str(src), "--output", str(out), "--quiet", "--idat-size", "64"])

    assert rc == 0
    assert sorted(p.name for p in out.iterdir()) == [
        "Merged_MapX_2x2@8x8.png",
        "Merged_MapY_1x1@2x2.png",
    ]
    with Image.open(out / "Merged_MapX_2x2@8x8.png") as im:
        px = np.asarray(im.convert("RGBA"))
    # (1,1) lands at (-1,-1), the top-left cell
    assert (px[0:4, 0:4] == BLUE).all()
    assert (px[4:8, 4:8] == RED).all()
    assert (px[0:4, 4:8] == GREEN).all()
    assert (px[4:8, 0:4] == GREEN).all()


def test_empty_input(tmp_path, capsys):
    rc = main(["--mode", "terrain", "--input", str(tmp_path), "--output", str(tmp_path / "out")])
    assert rc == 0
    assert "no BigWorldTerrain_*.png tiles" in capsys.readouterr().out
    assert list((tmp_path / "out").iterdir()) == []
