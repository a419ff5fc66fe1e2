"""Tables de poids du réseau n-tuple et leur format binaire.

Format de fichier (little-endian):

    uint32                 nombre de plans
    pour chaque plan:
        uint64             nombre de poids du plan
        float32 * n        poids

Le bloc d'un plan est produit par `WeightPlane` lui-même; `ValueTable` ne
connaît que le compteur de plans. Une sauvegarde d'une table chargée sans
mise à jour reproduit le fichier d'origine à l'octet près.

Les erreurs d'E/S ne terminent pas le processus: `ValueTable.load` et
`ValueTable.save` renvoient un `WeightIOResult` et laissent l'appelant décider.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, Optional, Sequence

import numpy as np

from threes.rl.features import ROW_COLUMN_TUPLES, TuplePattern, table_sizes

logger = logging.getLogger(__name__)

_PLANE_COUNT = struct.Struct("<I")
_PLANE_SIZE = struct.Struct("<Q")
_WEIGHT_DTYPE = np.dtype("<f4")

DEFAULT_PLANE_SIZE = 65536
DEFAULT_PLANE_COUNT = 8


class WeightFileError(OSError):
    """Le fichier de poids n'a pas pu être lu ou écrit."""

    def __init__(self, result: "WeightIOResult") -> None:
        super().__init__(result.message or f"Erreur d'E/S sur {result.path}")
        self.result = result


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ValueError(f"{what} tronqué: {len(data)} octets lus sur {size}")
    return data


def _remaining(stream: BinaryIO) -> int:
    position = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return end - position


class WeightPlane:
    """Table dense de poids float32 indexée par une feature."""

    def __init__(self, size: int = DEFAULT_PLANE_SIZE, values: Optional[np.ndarray] = None) -> None:
        if values is not None:
            self._values = np.array(values, dtype=np.float32).ravel()
        else:
            if size < 0:
                raise ValueError("size doit être positif")
            self._values = np.zeros(size, dtype=np.float32)

    @property
    def size(self) -> int:
        return int(self._values.shape[0])

    @property
    def values(self) -> np.ndarray:
        """Vue sur les poids (modifiable, taille fixe)."""

        return self._values

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def __setitem__(self, index: int, weight: float) -> None:
        self._values[index] = weight

    def write_to(self, stream: BinaryIO) -> None:
        stream.write(_PLANE_SIZE.pack(self.size))
        stream.write(self._values.astype(_WEIGHT_DTYPE, copy=False).tobytes())

    @classmethod
    def read_from(cls, stream: BinaryIO) -> "WeightPlane":
        (size,) = _PLANE_SIZE.unpack(_read_exact(stream, _PLANE_SIZE.size, "En-tête de plan"))
        expected = size * _WEIGHT_DTYPE.itemsize
        available = _remaining(stream)
        # un compteur corrompu ne doit pas déclencher une lecture démesurée
        if expected > available:
            raise ValueError(f"Plan de poids tronqué: {available} octets restants sur {expected}")
        data = _read_exact(stream, expected, "Plan de poids")
        return cls(values=np.frombuffer(data, dtype=_WEIGHT_DTYPE))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeightPlane):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"WeightPlane(size={self.size})"


@dataclass(frozen=True)
class WeightIOResult:
    """Résultat typé d'un chargement ou d'une sauvegarde."""

    ok: bool
    path: str
    message: str = ""
    table: Optional["ValueTable"] = None

    def unwrap(self) -> "ValueTable":
        """Renvoie la table chargée ou lève `WeightFileError`."""

        if not self.ok or self.table is None:
            raise WeightFileError(self)
        return self.table


class ValueTable:
    """Suite ordonnée de plans; le plan i est adressé par la feature i."""

    def __init__(self, planes: Sequence[WeightPlane] = ()) -> None:
        self._planes: List[WeightPlane] = list(planes)

    @classmethod
    def initialize(cls, sizes: Optional[Sequence[int]] = None) -> "ValueTable":
        """Alloue des plans à zéro (8 x 65536 par défaut)."""

        if sizes is None:
            sizes = [DEFAULT_PLANE_SIZE] * DEFAULT_PLANE_COUNT
        return cls([WeightPlane(size) for size in sizes])

    @classmethod
    def for_patterns(cls, patterns: Sequence[TuplePattern] = ROW_COLUMN_TUPLES) -> "ValueTable":
        return cls.initialize(table_sizes(patterns))

    @property
    def planes(self) -> tuple:
        return tuple(self._planes)

    def __len__(self) -> int:
        return len(self._planes)

    def __iter__(self) -> Iterator[WeightPlane]:
        return iter(self._planes)

    def __getitem__(self, index: int) -> WeightPlane:
        return self._planes[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueTable):
            return NotImplemented
        return self._planes == other._planes

    def value_of(self, features: Sequence[int]) -> float:
        """Somme des poids sélectionnés: plan[i][features[i]]."""

        return float(sum(plane.values[index] for plane, index in zip(self._planes, features)))

    def check_patterns(self, patterns: Sequence[TuplePattern]) -> None:
        """Vérifie que chaque plan a la taille attendue par son tuple."""

        expected = table_sizes(patterns)
        actual = tuple(plane.size for plane in self._planes)
        if len(expected) != len(actual):
            raise ValueError(
                f"La table contient {len(actual)} plans mais {len(expected)} tuples sont configurés"
            )
        for index, (want, got) in enumerate(zip(expected, actual)):
            if got < want:
                raise ValueError(f"Plan {index}: {got} poids, {want} attendus")

    # -- Format binaire --------------------------------------------------------

    def dump(self, stream: BinaryIO) -> None:
        stream.write(_PLANE_COUNT.pack(len(self._planes)))
        for plane in self._planes:
            plane.write_to(stream)

    @classmethod
    def parse(cls, stream: BinaryIO) -> "ValueTable":
        (count,) = _PLANE_COUNT.unpack(_read_exact(stream, _PLANE_COUNT.size, "Compteur de plans"))
        return cls([WeightPlane.read_from(stream) for _ in range(count)])

    @classmethod
    def load(cls, path: str | os.PathLike) -> WeightIOResult:
        """Charge une table depuis `path` sans jamais lever d'exception d'E/S."""

        path = os.fspath(path)
        try:
            with open(path, "rb") as stream:
                table = cls.parse(stream)
        except (OSError, ValueError) as exc:
            logger.error("Impossible de charger les poids depuis %s: %s", path, exc)
            return WeightIOResult(ok=False, path=path, message=str(exc))
        logger.info("Poids chargés depuis %s (%d plans)", path, len(table))
        return WeightIOResult(ok=True, path=path, table=table)

    def save(self, path: str | os.PathLike) -> WeightIOResult:
        """Écrit la table dans `path` (fichier tronqué)."""

        path = os.fspath(path)
        try:
            with open(path, "wb") as stream:
                self.dump(stream)
        except OSError as exc:
            logger.error("Impossible d'enregistrer les poids dans %s: %s", path, exc)
            return WeightIOResult(ok=False, path=path, message=str(exc), table=self)
        logger.info("Poids enregistrés dans %s (%d plans)", path, len(self))
        return WeightIOResult(ok=True, path=path, table=self)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"ValueTable(planes={[plane.size for plane in self._planes]})"


__all__ = [
    "DEFAULT_PLANE_COUNT",
    "DEFAULT_PLANE_SIZE",
    "ValueTable",
    "WeightFileError",
    "WeightIOResult",
    "WeightPlane",
]
