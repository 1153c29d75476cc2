# services/content/species.py
from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional

from models.monster import Species


class SpeciesCatalog:
    def __init__(self, species: Iterable[Species]) -> None:
        self._by_id: Dict[int, Species] = {s.id: s for s in species}

    def by_id(self, species_id: int) -> Optional[Species]:
        return self._by_id.get(int(species_id))

    def all(self) -> List[Species]:
        return list(self._by_id.values())

    def for_biome(self, biome: str) -> List[Species]:
        return [s for s in self._by_id.values() if biome in s.biomes]

    def weighted_random_for_biome(self, biome: str, rng: random.Random) -> Species:
        """
        Вага = spawn_rate. Якщо для біому нікого нема -> весь каталог.
        """
        pool = self.for_biome(biome) or self.all()
        if not pool:
            raise RuntimeError("species catalog is empty")

        weights = [max(0.0, s.spawn_rate) for s in pool]
        if sum(weights) <= 0:
            return rng.choice(pool)
        return rng.choices(pool, weights=weights, k=1)[0]


_catalog: Optional[SpeciesCatalog] = None


def set_species_catalog(catalog: SpeciesCatalog) -> None:
    global _catalog
    _catalog = catalog


def get_species_catalog() -> SpeciesCatalog:
    if _catalog is None:
        raise RuntimeError("species catalog is not loaded")
    return _catalog
