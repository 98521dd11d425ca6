import pytest
from hypothesis import given, strategies as st

from src.rig_lib import (
    aggregate_pick_list,
    component_count,
    sort_fittings,
    sort_pins,
    total_length_meters,
)

# --- Helpers ---


def totals_by_key(pick_list):
    """Flattens a pick list into {(section, key...): value} for comparison."""
    flat = {}
    for w in pick_list["wire"]:
        flat[("wire", w["material"], w["diameter"])] = w["length"]
    for f in pick_list["fittings"]:
        flat[("fitting", f["type"], f["pin_size"], f["diameter"])] = f["quantity"]
    for p in pick_list["pins"]:
        flat[("pin", p["size"])] = p["quantity"]
    return flat


def assert_totals_match(left, right):
    assert left.keys() == right.keys()
    for key in left:
        assert left[key] == pytest.approx(right[key])


maybe = lambda values: st.one_of(st.none(), st.sampled_from(values))  # noqa: E731

component_strategy = st.fixed_dictionaries(
    {"type": st.sampled_from(["Forestay", "Cap Shroud", "Lower Shroud"])},
    optional={
        "quantity": st.one_of(st.integers(min_value=0, max_value=6), st.none()),
        "length": maybe(["12m", "40ft", "33'", "9.5", "abc", ""]),
        "diameter": maybe(["8mm", "8 mm", "5/16", ""]),
        "material": maybe(["1x19 SS", "Dyform"]),
        "upper_termination": maybe(["Swage Stud", "Toggle Fork", "None", ""]),
        "pin_size_upper": maybe(["10mm", "1/2in", "N/A", ""]),
        "lower_termination": maybe(["T-Ball", "Toggle Fork", "None"]),
        "pin_size_lower": maybe(["10mm", "12mm"]),
    },
)

# --- Scenario Tests ---


def test_two_component_rig(survey_components):
    pick = aggregate_pick_list(survey_components)

    assert len(pick["wire"]) == 1
    wire = pick["wire"][0]
    assert (wire["material"], wire["diameter"]) == ("1x19 SS", "8mm")
    assert wire["length"] == pytest.approx(2 * 12 + 1 * 40 * 0.3048)
    assert wire["length"] == pytest.approx(36.192)

    fittings = {(f["type"], f["pin_size"], f["diameter"]): f["quantity"] for f in pick["fittings"]}
    assert fittings == {
        ("Swage Stud", "10mm", "8mm"): 2,
        ("Toggle Fork", "10mm", "8mm"): 3,
    }

    assert pick["pins"] == [{"size": "10mm", "quantity": 5}]


def test_output_is_in_first_seen_order(survey_components):
    pick = aggregate_pick_list(survey_components)
    assert [f["type"] for f in pick["fittings"]] == ["Swage Stud", "Toggle Fork"]


def test_zero_quantity_contributes_nothing():
    components = [
        {
            "type": "Runner",
            "quantity": 0,
            "length": "20m",
            "diameter": "6mm",
            "material": "Dyform",
            "upper_termination": "T-Ball",
            "pin_size_upper": "8mm",
        }
    ]
    pick = aggregate_pick_list(components)

    assert pick["wire"] == [{"material": "Dyform", "diameter": "6mm", "length": 0.0}]
    assert pick["fittings"][0]["quantity"] == 0
    assert pick["pins"][0]["quantity"] == 0


def test_garbage_quantity_does_not_raise():
    pick = aggregate_pick_list(
        [{"type": "Halyard", "quantity": "many", "material": "Dyneema SK78", "length": "30m"}]
    )
    assert pick["wire"][0]["length"] == 0.0


def test_none_terminations_contribute_no_fittings_or_pins():
    components = [
        {
            "type": "Backstay",
            "quantity": 1,
            "length": "15m",
            "diameter": "7mm",
            "material": "1x19 SS",
            "upper_termination": "None",
            "pin_size_upper": "10mm",
            "lower_termination": "None",
            "pin_size_lower": "10mm",
        }
    ]
    pick = aggregate_pick_list(components)

    assert pick["fittings"] == []
    assert pick["pins"] == []
    assert pick["wire"][0]["length"] == 15.0


def test_component_without_material_or_diameter_skips_wire():
    pick = aggregate_pick_list(
        [{"type": "Other Stay/Shroud", "quantity": 1, "length": "5m", "upper_termination": "Thimble"}]
    )
    assert pick["wire"] == []
    # Missing pin size and diameter fall back to the sentinel and no pin is counted
    assert pick["fittings"] == [
        {"type": "Thimble", "pin_size": "N/A", "diameter": "N/A", "quantity": 1}
    ]
    assert pick["pins"] == []


def test_blank_fields_read_as_not_recorded():
    pick = aggregate_pick_list(
        [
            {
                "type": "Forestay",
                "quantity": 1,
                "diameter": "",
                "material": "",
                "upper_termination": "Toggle Eye",
                "pin_size_upper": "",
            }
        ]
    )
    assert pick["wire"] == []
    assert pick["pins"] == []
    assert pick["fittings"][0]["pin_size"] == "N/A"


def test_diameter_spellings_are_not_unified():
    components = [
        {"type": "Lower Shroud", "quantity": 1, "length": "10m", "diameter": "8mm", "material": "1x19 SS"},
        {"type": "Lower Shroud", "quantity": 1, "length": "10m", "diameter": "8 mm", "material": "1x19 SS"},
    ]
    pick = aggregate_pick_list(components)
    assert {w["diameter"] for w in pick["wire"]} == {"8mm", "8 mm"}


def test_separator_characters_in_values_do_not_merge_groups():
    components = [
        {
            "type": "Runner",
            "quantity": 1,
            "length": "1m",
            "material": "X | Y",
            "diameter": "Z",
            "upper_termination": "Eye | Thimble",
            "pin_size_upper": "8mm",
        },
        {
            "type": "Runner",
            "quantity": 1,
            "length": "1m",
            "material": "X",
            "diameter": "Y | Z",
            "upper_termination": "Eye",
            "pin_size_upper": "Thimble | 8mm",
        },
    ]
    pick = aggregate_pick_list(components)

    assert [(w["material"], w["diameter"], w["length"]) for w in pick["wire"]] == [
        ("X | Y", "Z", 1.0),
        ("X", "Y | Z", 1.0),
    ]
    assert len(pick["fittings"]) == 2
    assert all(f["quantity"] == 1 for f in pick["fittings"])


def test_upper_and_lower_pins_count_separately():
    pick = aggregate_pick_list(
        [
            {
                "type": "Cap Shroud",
                "quantity": 2,
                "upper_termination": "Toggle Fork",
                "pin_size_upper": "12mm",
                "lower_termination": "Toggle Fork",
                "pin_size_lower": "10mm",
            }
        ]
    )
    assert {p["size"]: p["quantity"] for p in pick["pins"]} == {"12mm": 2, "10mm": 2}


def test_survey_insight_totals(survey_components):
    assert total_length_meters(survey_components) == pytest.approx(36.192)
    assert component_count(survey_components) == 3


def test_display_sorting():
    fittings = [
        {"type": "Toggle Fork", "pin_size": "12mm", "diameter": "8mm", "quantity": 1},
        {"type": "swage stud", "pin_size": "10mm", "diameter": "8mm", "quantity": 1},
        {"type": "Toggle Fork", "pin_size": "8mm", "diameter": "8mm", "quantity": 1},
    ]
    assert [(f["type"], f["pin_size"]) for f in sort_fittings(fittings)] == [
        ("swage stud", "10mm"),
        ("Toggle Fork", "8mm"),
        ("Toggle Fork", "12mm"),
    ]

    pins = [{"size": "12mm", "quantity": 1}, {"size": "8mm", "quantity": 2}]
    assert [p["size"] for p in sort_pins(pins)] == ["8mm", "12mm"]


# --- Property Tests ---


@given(st.lists(component_strategy, max_size=8), st.randoms())
def test_aggregation_is_order_independent(components, rnd):
    shuffled = list(components)
    rnd.shuffle(shuffled)

    assert_totals_match(
        totals_by_key(aggregate_pick_list(components)),
        totals_by_key(aggregate_pick_list(shuffled)),
    )


@given(st.lists(component_strategy, max_size=6), st.lists(component_strategy, max_size=6))
def test_aggregation_is_additive(a, b):
    combined = totals_by_key(aggregate_pick_list(a + b))
    left = totals_by_key(aggregate_pick_list(a))
    right = totals_by_key(aggregate_pick_list(b))

    summed = dict(left)
    for key, value in right.items():
        summed[key] = summed.get(key, 0) + value

    assert_totals_match(combined, summed)


@given(st.lists(component_strategy, max_size=8))
def test_each_component_contributes_at_most_two_fittings(components):
    pick = aggregate_pick_list(components)
    total_fittings = sum(f["quantity"] for f in pick["fittings"])
    total_qty = sum(c.get("quantity") or 0 for c in components)
    assert total_fittings <= 2 * total_qty
