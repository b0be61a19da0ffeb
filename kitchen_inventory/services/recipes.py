"""Recipe resolver: explodes sale lines into raw-material requirements."""

import re
from typing import Callable, Iterable, Mapping, Sequence

from kitchen_inventory.models.inventory import ComponentRequirement, SaleLine

Recipe = list[ComponentRequirement]


def normalize_name(name: str) -> str:
    """Normalize an item name for case-insensitive lookup."""
    return name.strip().lower()


def slugify(name: str) -> str:
    """Turn an item name into a SKU-like slug."""
    return re.sub(r"\s+", "-", normalize_name(name))


def _to_recipe(components: Iterable[ComponentRequirement | Mapping[str, float]]) -> Recipe:
    return [
        c if isinstance(c, ComponentRequirement) else ComponentRequirement(**c)
        for c in components
    ]


class RecipeTable:
    """Static recipe lookup keyed by SKU and by normalized item name."""

    def __init__(
        self,
        by_name: Mapping[str, Iterable] | None = None,
        by_sku: Mapping[str, Iterable] | None = None,
    ):
        self.by_name: dict[str, Recipe] = {
            normalize_name(name): _to_recipe(components)
            for name, components in (by_name or {}).items()
        }
        self.by_sku: dict[str, Recipe] = {
            sku: _to_recipe(components) for sku, components in (by_sku or {}).items()
        }

    @classmethod
    def default(cls) -> "RecipeTable":
        """Recipe table for the demo burger restaurant menu."""
        sku_aliases = {
            "1": "Classic Burger",
            "2": "Chicken Sandwich",
            "3": "French Fries",
            "4": "Onion Rings",
            "5": "Coca Cola",
            "6": "Coffee",
        }
        return cls(
            by_name=DEFAULT_RECIPES,
            by_sku={sku: DEFAULT_RECIPES[name] for sku, name in sku_aliases.items()},
        )


# Quantities are per one unit sold; fractional amounts are kg or litres.
DEFAULT_RECIPES: dict[str, list[dict[str, float]]] = {
    # Mains
    "Classic Burger": [
        {"sku": "beef-patty", "qty": 1},
        {"sku": "burger-bun", "qty": 1},
        {"sku": "lettuce", "qty": 0.02},
        {"sku": "tomato", "qty": 0.03},
        {"sku": "onion", "qty": 0.01},
    ],
    "Chicken Sandwich": [
        {"sku": "chicken-breast", "qty": 1},
        {"sku": "sandwich-bun", "qty": 1},
        {"sku": "mayo", "qty": 0.01},
    ],
    # Sides
    "French Fries": [
        {"sku": "potatoes", "qty": 0.2},
        {"sku": "oil", "qty": 0.05},
    ],
    "Onion Rings": [
        {"sku": "onions", "qty": 0.15},
        {"sku": "batter-mix", "qty": 0.1},
        {"sku": "oil", "qty": 0.05},
    ],
    # Drinks
    "Coca Cola": [
        {"sku": "cola-syrup", "qty": 0.05},
        {"sku": "water", "qty": 0.3},
        {"sku": "cup-large", "qty": 1},
        {"sku": "lid-large", "qty": 1},
    ],
    "Coffee": [
        {"sku": "coffee-beans", "qty": 0.02},
        {"sku": "water", "qty": 0.25},
        {"sku": "cup-medium", "qty": 1},
        {"sku": "lid-medium", "qty": 1},
    ],
}


# A strategy returns the per-unit recipe for a line, or None to pass.
ResolverStrategy = Callable[[RecipeTable, SaleLine], Recipe | None]


def resolve_by_sku(table: RecipeTable, line: SaleLine) -> Recipe | None:
    """Exact match on the line's SKU."""
    if line.sku:
        return table.by_sku.get(line.sku)
    return None


def resolve_by_name(table: RecipeTable, line: SaleLine) -> Recipe | None:
    """Case-insensitive, trimmed match on the line's name."""
    return table.by_name.get(normalize_name(line.name))


def direct_draw(table: RecipeTable, line: SaleLine) -> Recipe:
    """Treat the sold item itself as a stocked SKU, one unit per unit sold."""
    return [ComponentRequirement(sku=line.sku or slugify(line.name), qty=1)]


DEFAULT_STRATEGIES: tuple[ResolverStrategy, ...] = (
    resolve_by_sku,
    resolve_by_name,
    direct_draw,
)


class RecipeResolver:
    """Maps sale lines to component requirements through an ordered strategy chain."""

    def __init__(
        self,
        table: RecipeTable | None = None,
        strategies: Sequence[ResolverStrategy] | None = None,
    ):
        self.table = table if table is not None else RecipeTable.default()
        self.strategies = tuple(strategies) if strategies else DEFAULT_STRATEGIES

    def recipe_for(self, line: SaleLine) -> Recipe:
        """First recipe any strategy produces; empty if none does."""
        for strategy in self.strategies:
            recipe = strategy(self.table, line)
            if recipe is not None:
                return recipe
        return []

    def explode_line(self, line: SaleLine) -> list[ComponentRequirement]:
        """Requirements for one sale line, scaled by its quantity."""
        return [
            ComponentRequirement(sku=component.sku, qty=component.qty * line.qty)
            for component in self.recipe_for(line)
        ]

    def explode_lines(self, lines: Iterable[SaleLine]) -> list[ComponentRequirement]:
        """Requirements for many lines, summed per SKU. Output order is unspecified."""
        aggregated: dict[str, float] = {}

        for line in lines:
            for component in self.explode_line(line):
                aggregated[component.sku] = aggregated.get(component.sku, 0.0) + component.qty

        return [ComponentRequirement(sku=sku, qty=qty) for sku, qty in aggregated.items()]
