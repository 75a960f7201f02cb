"""Which saddles and mods are legal for a base.

Nothing here is cached. Mod legality depends on the current base and
saddle, so it is re-checked on every derivation pass.
"""

from __future__ import annotations

from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.models.catalog import Base, Catalog, Mod, Saddle


def legal_saddles(
    base: Base,
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Saddle]:
    """Saddles that fit *base*, in catalog order.

    Vehicles never take a saddle. A no-saddle-only mount gets the sentinel
    saddle alone. An empty result is a valid state, not an error.
    """
    if not base.is_mount:
        return []
    if base.no_saddle_only:
        sentinel = catalog.saddle(rules.no_saddle_id)
        return [sentinel] if sentinel is not None else []
    return [s for s in catalog.saddles.values() if s.fits(base)]


def is_saddle_legal(
    base: Base,
    saddle: Saddle | None,
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
) -> bool:
    if saddle is None:
        return True
    return any(s.id == saddle.id for s in legal_saddles(base, catalog, rules))


def is_mod_allowed(mod: Mod, base: Base, saddle: Saddle | None = None) -> bool:
    """A mod with no requirements is always legal."""
    return mod.requires.matches(base, saddle)


def legal_mods(base: Base, saddle: Saddle | None, catalog: Catalog) -> list[Mod]:
    return [m for m in catalog.mods.values() if is_mod_allowed(m, base, saddle)]
