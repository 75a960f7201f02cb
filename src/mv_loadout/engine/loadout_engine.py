"""Loadout engine: owns one configuration and its current derivation.

Every edit goes through a pure mutation function, the returned value
replaces the owned configuration, and exactly one derivation pass runs.
A rejected edit raises before anything is replaced, so the engine keeps
its previous, valid state.
"""

from __future__ import annotations

import copy
from typing import Any

from mv_loadout.codec.export_document import build_document
from mv_loadout.codec.statblock import render_statblock
from mv_loadout.engine import mutations
from mv_loadout.engine.compatibility import legal_mods, legal_saddles
from mv_loadout.engine.pipeline import LoadoutDerivation, derive_loadout
from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.engine.weapon_fit import fitting_weapons, max_quantity
from mv_loadout.errors import UnknownEntityError
from mv_loadout.models.catalog import Catalog, Mod, Saddle, Weapon
from mv_loadout.models.loadout import LoadoutConfiguration


class LoadoutEngine:
    """Owns the editing session's configuration.

    Consumes a Catalog and RulesConfig without modifying either.
    """

    __slots__ = ("_catalog", "_rules", "_config", "_derivation")

    def __init__(
        self,
        catalog: Catalog,
        config: LoadoutConfiguration,
        rules: RulesConfig | None = None,
    ) -> None:
        self._catalog = catalog
        self._rules = rules or DEFAULT_RULES
        self._derivation = derive_loadout(config, catalog, self._rules)
        self._config = self._derivation.config

    # --- Factories ---------------------------------------------------------

    @classmethod
    def new_loadout(
        cls,
        catalog: Catalog,
        base_id: str | None = None,
        rules: RulesConfig | None = None,
    ) -> LoadoutEngine:
        """Start on *base_id*, or the first base in the catalog."""
        if base_id is None:
            if not catalog.bases:
                raise UnknownEntityError("Catalog has no mounts or vehicles")
            base_id = next(iter(catalog.bases))
        config = mutations.select_base(catalog, base_id, rules or DEFAULT_RULES)
        return cls(catalog, config, rules)

    @classmethod
    def from_state(
        cls,
        config: LoadoutConfiguration,
        catalog: Catalog,
        rules: RulesConfig | None = None,
    ) -> LoadoutEngine:
        """Restore an engine from a previously saved configuration."""
        return cls(catalog, copy.deepcopy(config), rules)

    def copy(self) -> LoadoutEngine:
        """Independent engine for speculative edits."""
        return LoadoutEngine(self._catalog, copy.deepcopy(self._config), self._rules)

    # --- State -------------------------------------------------------------

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def rules(self) -> RulesConfig:
        return self._rules

    @property
    def config(self) -> LoadoutConfiguration:
        """Deep copy of the current configuration for serialisation."""
        return copy.deepcopy(self._config)

    @property
    def derivation(self) -> LoadoutDerivation:
        return self._derivation

    def _commit(self, config: LoadoutConfiguration) -> LoadoutDerivation:
        derivation = derive_loadout(config, self._catalog, self._rules)
        self._config = derivation.config
        self._derivation = derivation
        return derivation

    # --- Options -----------------------------------------------------------

    def saddle_options(self) -> list[Saddle]:
        return legal_saddles(self._derivation.base, self._catalog, self._rules)

    def mod_options(self) -> list[Mod]:
        return legal_mods(self._derivation.base, self._derivation.saddle, self._catalog)

    def weapon_options(self, point_id: str) -> list[tuple[Weapon, int]]:
        """(weapon, max quantity) pairs selectable on *point_id*."""
        for point in self._derivation.mounting_points:
            if point.id == point_id:
                weapons = fitting_weapons(
                    point,
                    self._catalog.weapons.values(),
                    self._derivation.derived.weapon_allowlist,
                    self._rules.size_units,
                )
                return [(w, max_quantity(point, w, self._rules.size_units)) for w in weapons]
        raise UnknownEntityError(f"Unknown mounting point: {point_id!r}")

    # --- Edits -------------------------------------------------------------

    def select_base(self, base_id: str) -> LoadoutDerivation:
        """Switch base; resets saddle, mods, mounts, and crew stats."""
        return self._commit(mutations.select_base(self._catalog, base_id, self._rules))

    def select_saddle(self, saddle_id: str | None) -> LoadoutDerivation:
        return self._commit(
            mutations.select_saddle(self._config, self._catalog, saddle_id, self._rules)
        )

    def add_mod(self, mod_id: str) -> LoadoutDerivation:
        return self._commit(mutations.add_mod(self._config, self._catalog, mod_id))

    def remove_mod(self, mod_id: str) -> LoadoutDerivation:
        return self._commit(mutations.remove_mod(self._config, mod_id))

    def move_mod(self, mod_id: str, index: int) -> LoadoutDerivation:
        return self._commit(mutations.move_mod(self._config, mod_id, index))

    def set_mount_weapon(self, point_id: str, weapon_id: str | None) -> LoadoutDerivation:
        return self._commit(
            mutations.set_mount_weapon(self._config, self._catalog, point_id, weapon_id, self._rules)
        )

    def set_mount_quantity(self, point_id: str, qty: int) -> LoadoutDerivation:
        return self._commit(
            mutations.set_mount_quantity(self._config, self._catalog, point_id, qty, self._rules)
        )

    def set_proficiency(self, point_id: str, proficient: bool) -> LoadoutDerivation:
        return self._commit(
            mutations.set_proficiency(self._config, self._catalog, point_id, proficient, self._rules)
        )

    def set_crew_stats(self, group_id: str, *, dex_mod=None, prof_bonus=None) -> LoadoutDerivation:
        return self._commit(
            mutations.set_crew_stats(
                self._config,
                self._catalog,
                group_id,
                dex_mod=dex_mod,
                prof_bonus=prof_bonus,
                rules=self._rules,
            )
        )

    # --- Output ------------------------------------------------------------

    def export(self) -> dict[str, Any]:
        return build_document(self._derivation, self._catalog, self._rules)

    def statblock(self) -> str:
        return render_statblock(self._derivation, self._catalog)
