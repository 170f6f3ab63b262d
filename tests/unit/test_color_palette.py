import json

import pytest

from app.services.color_palette import (
    Color,
    LabelTable,
    confidence_label_table,
    tissue_label_table,
)


def test_builtin_tables():
    assert len(tissue_label_table) == 12
    assert len(confidence_label_table) == 10
    assert tissue_label_table[0].name == "Unhealthy Skin"
    assert tissue_label_table[11].name == "Others"
    assert confidence_label_table[0].name == "91%-100%"
    assert confidence_label_table[9].name == "1%-10%"


def test_opaque_color_packing():
    assert tissue_label_table[0].color == Color(30, 73, 40, 255)
    assert tissue_label_table[0].color.as_uint32 == 0xFF1E4928
    assert tissue_label_table.packed_color(2) == 0xFFFF1493


def test_translucent_color_is_premultiplied():
    color = Color(255, 0, 0, 128)
    assert color.as_uint32 == 0x80800000
    assert Color(0, 0, 255, 64).as_uint32 == 0x40000040


def test_hex_conversion():
    assert Color.from_hex("#1E4928") == Color(30, 73, 40, 255)
    assert Color.from_hex("FF000080") == Color(255, 0, 0, 128)
    assert Color(30, 144, 255).hex == "#1E90FF"
    with pytest.raises(ValueError):
        Color.from_hex("#123")


def test_legend_text_contrast():
    slough = tissue_label_table[5].color
    unhealthy_skin = tissue_label_table[0].color
    assert slough.is_light()
    assert not unhealthy_skin.is_light()


def test_indices_past_table_reuse_colors():
    entry = tissue_label_table.entry_for(13)
    assert entry.name == "Class 13"
    assert entry.color == tissue_label_table[1].color
    assert tissue_label_table.packed_color(12) == tissue_label_table.packed_color(0)
    with pytest.raises(IndexError):
        tissue_label_table.entry_for(-1)


def test_table_is_immutable():
    with pytest.raises(TypeError):
        tissue_label_table[0] = ("Skin", Color(0, 0, 0))


def test_from_json_with_colors(tmp_path):
    path = tmp_path / "labels.json"
    path.write_text(json.dumps([
        {"name": "Background", "color": "#000000"},
        {"name": "Wound", "color": "#FF000080"},
    ]))
    table = LabelTable.from_json(str(path))
    assert table.names == ["Background", "Wound"]
    assert table[1].color == Color(255, 0, 0, 128)


def test_from_json_names_only_uses_fallback_colors(tmp_path):
    path = tmp_path / "labels.json"
    path.write_text(json.dumps(["Skin", "Granulation"]))
    table = LabelTable.from_json(str(path), fallback=tissue_label_table)
    assert table[0] == ("Skin", tissue_label_table[0].color)
    assert table[1] == ("Granulation", tissue_label_table[1].color)


def test_from_json_rejects_bad_files(tmp_path):
    path = tmp_path / "labels.json"
    path.write_text(json.dumps({"labels": []}))
    with pytest.raises(ValueError):
        LabelTable.from_json(str(path))

    path.write_text(json.dumps(["Skin"]))
    with pytest.raises(ValueError):
        LabelTable.from_json(str(path))


def test_duplicate_names_are_rejected(tmp_path):
    with pytest.raises(ValueError, match="Slough"):
        LabelTable([("Slough", (255, 255, 0)), ("Bone", (226, 226, 185)), ("Slough", (0, 0, 0))])

    path = tmp_path / "labels.json"
    path.write_text(json.dumps(["Skin", "Bone", "Skin"]))
    with pytest.raises(ValueError):
        LabelTable.from_json(str(path), fallback=tissue_label_table)
