# app/services/variants.py
"""
Variant options and their Cartesian-product combinations.

A product with options Size:[S, M] and Color:[Red, Blue] has four
combinations. Each combination is identified by its sorted
`optionId:value` pairs, so the id does not depend on option order and a
price override survives regeneration as long as the same pairs exist.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

COMBINATION_SEPARATOR = "|"


class VariantOption(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    values: list[str] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def distinct_values(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for raw in v:
            value = str(raw).strip()
            if value and value not in seen:
                seen.append(value)
        return seen


class VariantCombination(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    options: dict[str, str]
    # None => product base price
    price: float | None = None

    @field_validator("price", mode="before")
    @classmethod
    def empty_price_is_none(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


def combination_id(pairs: Mapping[str, str]) -> str:
    """Canonical key: `optionId:value` pairs sorted by option id."""
    return COMBINATION_SEPARATOR.join(
        f"{option_id}:{pairs[option_id]}" for option_id in sorted(pairs)
    )


def _valid_options(options: list[VariantOption]) -> list[VariantOption]:
    return [o for o in options if o.name.strip() and o.values]


def _expand(
    options: list[VariantOption],
    index: int,
    current: dict[str, str],
    out: list[dict[str, str]],
) -> None:
    if index == len(options):
        out.append(dict(current))
        return
    option = options[index]
    for value in option.values:
        current[option.id] = value
        _expand(options, index + 1, current, out)
    del current[option.id]


def regenerate(
    options: list[VariantOption],
    previous: list[VariantCombination] | None = None,
) -> list[VariantCombination]:
    """
    Rebuild the combinations for `options`, keeping price overrides of
    combinations whose id is unchanged.

    No valid option (named, at least one value) => no combinations.
    """
    valid = _valid_options(options)
    if not valid:
        return []

    prior_prices = {c.id: c.price for c in (previous or [])}

    tuples: list[dict[str, str]] = []
    _expand(valid, 0, {}, tuples)

    combinations: list[VariantCombination] = []
    for pairs in tuples:
        key = combination_id(pairs)
        combinations.append(
            VariantCombination(id=key, options=pairs, price=prior_prices.get(key))
        )
    return combinations


# ---------------------------------------------------------------------------
# Product attributes helpers
# ---------------------------------------------------------------------------


def load_options(attributes: Mapping[str, Any] | None) -> list[VariantOption]:
    raw = (attributes or {}).get("variantOptions") or []
    return [VariantOption.model_validate(o) for o in raw]


def load_combinations(attributes: Mapping[str, Any] | None) -> list[VariantCombination]:
    raw = (attributes or {}).get("variantCombinations") or []
    return [VariantCombination.model_validate(c) for c in raw]


def apply_variants(
    attributes: Mapping[str, Any] | None,
    options: list[VariantOption],
    price_overrides: Mapping[str, float | None] | None = None,
) -> dict[str, Any]:
    """
    New attributes blob with `options` and regenerated combinations.

    `price_overrides` (combination id -> price) are applied after
    regeneration; ids that no longer exist are ignored.
    """
    current = dict(attributes or {})
    combinations = regenerate(options, load_combinations(current))

    for combo in combinations:
        if price_overrides and combo.id in price_overrides:
            combo.price = price_overrides[combo.id]

    current["hasVariants"] = bool(combinations)
    current["variantOptions"] = [o.model_dump() for o in options]
    current["variantCombinations"] = [c.model_dump() for c in combinations]
    return current


def has_variants(attributes: Mapping[str, Any] | None) -> bool:
    """True when a buyer must pick one of the product's combinations."""
    return bool(_valid_options(load_options(attributes))) and bool(load_combinations(attributes))


def find_combination(
    attributes: Mapping[str, Any] | None,
    selections: Mapping[str, str] | None,
) -> VariantCombination | None:
    """
    Combination matching `selections`, keyed by option id or option name.

    None when the product has no variants or a selection is missing.
    """
    if not selections:
        return None

    options = _valid_options(load_options(attributes))
    if not options:
        return None

    pairs: dict[str, str] = {}
    for option in options:
        value = selections.get(option.id, selections.get(option.name))
        if value is None:
            return None
        pairs[option.id] = str(value).strip()

    key = combination_id(pairs)
    for combo in load_combinations(attributes):
        if combo.id == key:
            return combo
    return None


def effective_price(
    base_price: float,
    attributes: Mapping[str, Any] | None,
    selections: Mapping[str, str] | None,
) -> float:
    """Override of the selected combination, else the base price."""
    combo = find_combination(attributes, selections)
    if combo is not None and combo.price is not None:
        return float(combo.price)
    return float(base_price)


def describe_selections(
    attributes: Mapping[str, Any] | None,
    selections: Mapping[str, str] | None,
) -> dict[str, str] | None:
    """Selections keyed by option display name, for the stored order line."""
    if not selections:
        return None
    names = {o.id: o.name for o in load_options(attributes)}
    return {names.get(key, key): str(value) for key, value in selections.items()}
