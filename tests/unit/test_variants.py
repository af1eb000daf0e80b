"""Unit tests for variant combination generation and pricing."""

import pytest

from app.services.variants import (
    VariantCombination,
    VariantOption,
    apply_variants,
    effective_price,
    find_combination,
    regenerate,
)

SIZE = VariantOption(id="opt-size", name="Size", values=["S", "M"])
COLOR = VariantOption(id="opt-color", name="Color", values=["Red", "Blue"])


@pytest.mark.unit
class TestRegenerate:
    def test_cartesian_product(self):
        combos = regenerate([SIZE, COLOR])
        assert len(combos) == 4
        assert len({c.id for c in combos}) == 4
        assert {"opt-size": "S", "opt-color": "Blue"} in [c.options for c in combos]

    def test_idempotent(self):
        first = regenerate([SIZE, COLOR])
        second = regenerate([SIZE, COLOR], first)
        assert [c.model_dump() for c in first] == [c.model_dump() for c in second]

    def test_id_does_not_depend_on_option_order(self):
        assert {c.id for c in regenerate([SIZE, COLOR])} == {c.id for c in regenerate([COLOR, SIZE])}

    def test_override_survives_when_combination_still_exists(self):
        combos = regenerate([SIZE, COLOR])
        target = next(c for c in combos if c.options == {"opt-size": "M", "opt-color": "Red"})
        target.price = 30000

        larger = VariantOption(id="opt-size", name="Size", values=["S", "M", "L"])
        regenerated = regenerate([larger, COLOR], combos)

        assert len(regenerated) == 6
        kept = next(c for c in regenerated if c.id == target.id)
        assert kept.price == 30000

    def test_override_dropped_when_value_removed(self):
        combos = regenerate([SIZE, COLOR])
        for c in combos:
            c.price = 1000
        smaller = VariantOption(id="opt-size", name="Size", values=["S"])
        regenerated = regenerate([smaller, COLOR], combos)
        assert len(regenerated) == 2
        assert all(c.options["opt-size"] == "S" for c in regenerated)

    def test_empty_and_unnamed_options_produce_nothing(self):
        assert regenerate([]) == []
        assert regenerate([VariantOption(id="x", name="", values=["a"])]) == []
        assert regenerate([VariantOption(id="x", name="X", values=[])]) == []

    def test_blank_and_duplicate_values_are_dropped(self):
        option = VariantOption(id="o", name="O", values=["a", " a ", "", "b"])
        assert option.values == ["a", "b"]

    def test_empty_string_price_means_base_price(self):
        assert VariantCombination(id="x", options={}, price="").price is None


@pytest.mark.unit
class TestPricing:
    def setup_method(self):
        self.attributes = apply_variants({}, [SIZE, COLOR], {"opt-color:Red|opt-size:M": 30000})

    def test_apply_sets_flag_and_combinations(self):
        assert self.attributes["hasVariants"] is True
        assert len(self.attributes["variantCombinations"]) == 4

    def test_apply_without_options_clears_flag(self):
        cleared = apply_variants(self.attributes, [])
        assert cleared["hasVariants"] is False
        assert cleared["variantCombinations"] == []

    def test_selection_by_option_id_or_name(self):
        by_id = find_combination(self.attributes, {"opt-size": "M", "opt-color": "Red"})
        by_name = find_combination(self.attributes, {"Size": "M", "Color": "Red"})
        assert by_id is not None
        assert by_id.id == by_name.id

    def test_override_price(self):
        assert effective_price(25000, self.attributes, {"Size": "M", "Color": "Red"}) == 30000

    def test_base_price_without_override(self):
        assert effective_price(25000, self.attributes, {"Size": "S", "Color": "Red"}) == 25000

    def test_base_price_for_incomplete_selection(self):
        assert effective_price(25000, self.attributes, {"Size": "M"}) == 25000
        assert effective_price(25000, self.attributes, None) == 25000
