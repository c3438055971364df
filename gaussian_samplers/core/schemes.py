"""
Scheme tags for each sampler family.

Tags are closed enumerations; string names are resolved case-insensitively
and anything unrecognized raises :class:`UnknownSchemeError` at construction
time instead of silently falling through.
"""

from enum import Enum
from typing import Dict, Union

from .exceptions import UnknownSchemeError


def _normalize(name: str) -> str:
    return name.strip().lower().replace("_", "-").replace(" ", "-")


class _SchemeEnum(Enum):
    """Enum with case-insensitive lookup by display name or alias."""

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {}

    @classmethod
    def from_name(cls, name: Union[str, "_SchemeEnum"]):
        """
        Resolve a scheme tag.

        Args:
            name: Display name, alias, or an enum member

        Returns:
            Enum member

        Raises:
            UnknownSchemeError: If the tag is not recognized
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnknownSchemeError(name, [m.value for m in cls])

        key = _normalize(name)
        for member in cls:
            if _normalize(member.value) == key or _normalize(member.name) == key:
                return member
        aliases = {_normalize(k): v for k, v in cls._aliases().items()}
        if key in aliases:
            return cls[aliases[key]]
        raise UnknownSchemeError(name, [m.value for m in cls])


class SplittingScheme(_SchemeEnum):
    """Exact matrix-splitting schemes handled by the stationary driver."""

    GAUSS_SEIDEL = "Gauss-Seidel"
    RICHARDSON = "Richardson"
    JACOBI = "Jacobi"
    SOR = "SOR"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {"gs": "GAUSS_SEIDEL", "gaussseidel": "GAUSS_SEIDEL"}


class ApproximateScheme(_SchemeEnum):
    """Diagonal-based splittings with a biased stationary law."""

    CLONE = "Clone"
    HOGWILD = "Hogwild"

    @classmethod
    def _aliases(cls) -> Dict[str, str]:
        return {"clone-mcmc": "CLONE"}


class AugmentationScheme(_SchemeEnum):
    """Exact data augmentation schemes."""

    EDA = "EDA"
    GEDA = "GEDA"
