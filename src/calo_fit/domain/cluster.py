"""Calorimeter hit and cluster containers consumed by the fit helpers.

This module provides:
- CaloHitLike / ClusterLike: the read-only interface the fit helpers rely on
- CaloHit: Immutable calorimeter deposit
- OrderedCaloHitList: Hits grouped by pseudolayer, iterated in ascending layer order
- Cluster: Collection of hits with per-layer centroids

The fit helpers never mutate a cluster. Any object exposing the ``ClusterLike``
attributes can be fitted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np

from calo_fit.domain.vectors import as_vector3, unit_vector
from calo_fit.errors import StatusCode, StatusCodeError

if TYPE_CHECKING:
    from numpy.typing import NDArray


@runtime_checkable
class CaloHitLike(Protocol):
    """Read-only view of a single calorimeter deposit."""

    @property
    def position(self) -> Any: ...

    @property
    def cell_normal_vector(self) -> Any: ...

    @property
    def cell_length_scale(self) -> float: ...

    @property
    def input_energy(self) -> float: ...

    @property
    def pseudo_layer(self) -> int: ...


@runtime_checkable
class ClusterLike(Protocol):
    """Read-only view of a cluster: hits by pseudolayer plus layer centroids."""

    @property
    def ordered_calo_hits(self) -> Mapping[int, Sequence[CaloHitLike]]: ...

    def get_centroid(self, pseudo_layer: int) -> Any: ...


@dataclass(frozen=True, eq=False)
class CaloHit:
    """Single calorimeter energy deposit.

    Hits compare by identity: two deposits with identical attributes are still
    distinct measurements.

    Attributes:
        position: Hit position (float64, shape (3,))
        cell_normal_vector: Unit normal of the cell (float64, shape (3,))
        cell_length_scale: Characteristic cell size, same units as position
        input_energy: Deposited energy
        pseudo_layer: Pseudolayer index
    """

    position: NDArray[np.float64]
    cell_normal_vector: NDArray[np.float64]
    cell_length_scale: float
    input_energy: float
    pseudo_layer: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vector3(self.position, "position"))
        object.__setattr__(
            self,
            "cell_normal_vector",
            unit_vector(as_vector3(self.cell_normal_vector, "cell_normal_vector"), "cell_normal_vector"),
        )
        object.__setattr__(self, "cell_length_scale", float(self.cell_length_scale))
        object.__setattr__(self, "input_energy", float(self.input_energy))
        if int(self.pseudo_layer) != self.pseudo_layer or self.pseudo_layer < 0:
            raise ValueError(f"pseudo_layer must be a non-negative integer, got {self.pseudo_layer!r}")
        object.__setattr__(self, "pseudo_layer", int(self.pseudo_layer))
        if self.cell_length_scale < 0.0:
            raise ValueError(f"cell_length_scale must be non-negative, got {self.cell_length_scale}")
        if self.input_energy < 0.0:
            raise ValueError(f"input_energy must be non-negative, got {self.input_energy}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> CaloHit:
        """Build a hit from a JSON-style mapping.

        Keys: ``position``, ``normal``, ``cell_size``, ``energy``, ``pseudo_layer``.
        """
        missing = [k for k in ("position", "normal", "cell_size", "pseudo_layer") if k not in payload]
        if missing:
            raise ValueError(f"hit is missing required keys: {', '.join(missing)}")
        return cls(
            position=payload["position"],
            cell_normal_vector=payload["normal"],
            cell_length_scale=payload["cell_size"],
            input_energy=payload.get("energy", 0.0),
            pseudo_layer=payload["pseudo_layer"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": [float(c) for c in self.position],
            "normal": [float(c) for c in self.cell_normal_vector],
            "cell_size": self.cell_length_scale,
            "energy": self.input_energy,
            "pseudo_layer": self.pseudo_layer,
        }


class OrderedCaloHitList(Mapping[int, tuple[CaloHit, ...]]):
    """Hits grouped by pseudolayer.

    Iteration (keys, items, values) is always in ascending pseudolayer order;
    ``reversed()`` walks layers from the outermost inwards. Layers are removed
    once their last hit is removed, so every stored layer is occupied.
    """

    def __init__(self, hits: Iterable[CaloHit] = ()) -> None:
        self._layers: dict[int, list[CaloHit]] = {}
        for hit in hits:
            self.add_calo_hit(hit)

    def add_calo_hit(self, hit: CaloHit) -> None:
        layer_hits = self._layers.setdefault(int(hit.pseudo_layer), [])
        if any(existing is hit for existing in layer_hits):
            raise StatusCodeError(StatusCode.INVALID_PARAMETER, "hit is already in the list")
        layer_hits.append(hit)

    def remove_calo_hit(self, hit: CaloHit) -> None:
        layer = int(hit.pseudo_layer)
        layer_hits = self._layers.get(layer)
        if layer_hits is None:
            raise StatusCodeError(StatusCode.NOT_FOUND, f"no hits in pseudolayer {layer}")
        for index, existing in enumerate(layer_hits):
            if existing is hit:
                del layer_hits[index]
                break
        else:
            raise StatusCodeError(StatusCode.NOT_FOUND, "hit is not in the list")
        if not layer_hits:
            del self._layers[layer]

    def __getitem__(self, pseudo_layer: int) -> tuple[CaloHit, ...]:
        return tuple(self._layers[pseudo_layer])

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._layers))

    def __reversed__(self) -> Iterator[int]:
        return iter(sorted(self._layers, reverse=True))

    def __len__(self) -> int:
        return len(self._layers)

    @property
    def n_calo_hits(self) -> int:
        return sum(len(hits) for hits in self._layers.values())

    @property
    def inner_pseudo_layer(self) -> int | None:
        return min(self._layers) if self._layers else None

    @property
    def outer_pseudo_layer(self) -> int | None:
        return max(self._layers) if self._layers else None


class Cluster:
    """Cluster of calorimeter hits.

    Example:
        >>> cluster = Cluster([CaloHit((0, 0, 0), (0, 0, 1), 1.0, 1.0, 0)])
        >>> cluster.n_calo_hits
        1
    """

    def __init__(self, hits: Iterable[CaloHit] = ()) -> None:
        self._ordered_calo_hits = OrderedCaloHitList(hits)

    @property
    def ordered_calo_hits(self) -> OrderedCaloHitList:
        return self._ordered_calo_hits

    @property
    def n_calo_hits(self) -> int:
        return self._ordered_calo_hits.n_calo_hits

    @property
    def n_occupied_layers(self) -> int:
        return len(self._ordered_calo_hits)

    @property
    def inner_pseudo_layer(self) -> int | None:
        return self._ordered_calo_hits.inner_pseudo_layer

    @property
    def outer_pseudo_layer(self) -> int | None:
        return self._ordered_calo_hits.outer_pseudo_layer

    @property
    def energy(self) -> float:
        return float(sum(h.input_energy for hits in self._ordered_calo_hits.values() for h in hits))

    def add_calo_hit(self, hit: CaloHit) -> None:
        self._ordered_calo_hits.add_calo_hit(hit)

    def remove_calo_hit(self, hit: CaloHit) -> None:
        self._ordered_calo_hits.remove_calo_hit(hit)

    def get_centroid(self, pseudo_layer: int) -> NDArray[np.float64]:
        """Unweighted mean hit position in one pseudolayer.

        Raises:
            StatusCodeError: NOT_FOUND if the layer holds no hits.
        """
        if pseudo_layer not in self._ordered_calo_hits:
            raise StatusCodeError(StatusCode.NOT_FOUND, f"no hits in pseudolayer {pseudo_layer}")
        hits = self._ordered_calo_hits[pseudo_layer]
        centroid = np.mean(np.stack([h.position for h in hits]), axis=0)
        centroid.flags.writeable = False
        return centroid

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Cluster:
        """Build a cluster from ``{"hits": [{...}, ...]}``."""
        hits = payload.get("hits")
        if not isinstance(hits, list):
            raise ValueError("cluster payload must contain a 'hits' list")
        return cls(CaloHit.from_dict(item) for item in hits)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hits": [h.to_dict() for hits in self._ordered_calo_hits.values() for h in hits],
        }

    def __repr__(self) -> str:
        return (
            f"Cluster(n_calo_hits={self.n_calo_hits}, "
            f"layers={self.inner_pseudo_layer}..{self.outer_pseudo_layer})"
        )


__all__ = ["CaloHit", "CaloHitLike", "Cluster", "ClusterLike", "OrderedCaloHitList"]
