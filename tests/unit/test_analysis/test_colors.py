"""
Unit tests for palette, registry and shade assignment.
"""

import pytest

from diskmonitor.analysis.colors import (
    PALETTE,
    SHADE_MIN_LIGHTNESS,
    ColorRegistry,
    assign_colors,
    hex_to_hsl,
    hsl_to_hex,
    palette_color,
    shade,
)
from diskmonitor.models.series import GroupBy, GroupInfo


def _info(database_name, file_id=1, drive="D"):
    return GroupInfo(
        database_name=database_name,
        type_desc="ROWS",
        file_id=file_id,
        drive=drive,
        path=rf"{drive}:\Data\{database_name}_{file_id}.mdf",
    )


@pytest.mark.unit
class TestPalette:

    def test_palette_size(self):
        assert len(PALETTE) == 18
        assert len(set(PALETTE)) == 18

    def test_palette_wraps(self):
        assert palette_color(0) == PALETTE[0]
        assert palette_color(18) == PALETTE[0]
        assert palette_color(19) == PALETTE[1]

    @pytest.mark.parametrize("color", ["#FF0000", "#00FF00", "#0000FF", "#FFFFFF", "#000000"])
    def test_hsl_conversion_roundtrip(self, color):
        assert hsl_to_hex(*hex_to_hsl(color)) == color

    def test_hex_to_hsl_components(self):
        hue, saturation, lightness = hex_to_hsl("#FF0000")
        assert hue == 0.0
        assert saturation == 1.0
        assert lightness == 0.5


@pytest.mark.unit
class TestColorRegistry:

    def test_first_come_indices(self):
        registry = ColorRegistry()
        assert registry.index_for("SalesDB") == 0
        assert registry.index_for("HRDB") == 1
        assert registry.index_for("SalesDB") == 0
        assert len(registry) == 2

    def test_base_color_is_stable(self):
        registry = ColorRegistry()
        first = registry.base_color("SalesDB")
        registry.base_color("HRDB")
        assert registry.base_color("SalesDB") == first == PALETTE[0]

    def test_reset(self):
        registry = ColorRegistry()
        registry.index_for("SalesDB")
        registry.index_for("HRDB")
        registry.reset()

        assert "SalesDB" not in registry
        assert registry.index_for("HRDB") == 0


@pytest.mark.unit
class TestShade:

    def test_single_file_keeps_base(self):
        assert shade(PALETTE[3], 0, 1) == PALETTE[3]

    def test_lightness_increases_with_index(self):
        base = PALETTE[0]
        lightness = [hex_to_hsl(shade(base, i, 4))[2] for i in range(4)]
        assert lightness == sorted(lightness)
        assert len(set(lightness)) == 4

    def test_lightness_window(self):
        base = "#1A1A80"
        _, _, base_lightness = hex_to_hsl(base)
        darkest = hex_to_hsl(shade(base, 0, 3))[2]
        assert darkest == pytest.approx(max(SHADE_MIN_LIGHTNESS, base_lightness - 0.22), abs=0.01)

    def test_hue_is_preserved(self):
        base = PALETTE[1]
        hue = hex_to_hsl(base)[0]
        assert hex_to_hsl(shade(base, 2, 3))[0] == pytest.approx(hue, abs=0.01)

    def test_shades_are_uppercase_hex(self):
        color = shade(PALETTE[2], 1, 3)
        assert color.startswith("#")
        assert len(color) == 7
        assert color == color.upper()


@pytest.mark.unit
class TestAssignColors:

    def test_database_grouping_uses_registry(self):
        registry = ColorRegistry()
        registry.index_for("SalesDB")
        universe = {"HRDB": _info("HRDB"), "SalesDB": _info("SalesDB")}

        colors = assign_colors(GroupBy.DATABASE, universe, registry)
        assert colors == {"HRDB": PALETTE[1], "SalesDB": PALETTE[0]}

    def test_database_colour_survives_new_databases(self):
        registry = ColorRegistry()
        before = assign_colors(GroupBy.DATABASE, {"SalesDB": _info("SalesDB")}, registry)
        after = assign_colors(
            GroupBy.DATABASE,
            {"AuditDB": _info("AuditDB"), "SalesDB": _info("SalesDB")},
            registry,
        )
        assert after["SalesDB"] == before["SalesDB"]
        assert after["AuditDB"] != after["SalesDB"]

    def test_drive_grouping_uses_position(self):
        universe = {"D:": _info("SalesDB"), "L:": _info("SalesDB", drive="L")}
        colors = assign_colors(GroupBy.DRIVE, universe, ColorRegistry())
        assert colors == {"D:": PALETTE[0], "L:": PALETTE[1]}

    def test_file_grouping_shades_per_database(self):
        registry = ColorRegistry()
        universe = {
            "HRDB:1": _info("HRDB"),
            "SalesDB:1": _info("SalesDB"),
            "SalesDB:2": _info("SalesDB", file_id=2, drive="L"),
        }
        colors = assign_colors(GroupBy.FILE, universe, registry)

        assert colors["HRDB:1"] == registry.base_color("HRDB")
        sales_base = registry.base_color("SalesDB")
        assert colors["SalesDB:1"] == shade(sales_base, 0, 2)
        assert colors["SalesDB:2"] == shade(sales_base, 1, 2)
        assert colors["SalesDB:1"] != colors["SalesDB:2"]
