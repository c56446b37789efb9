"""Pydantic models for benchmark data structures.

Provides validated, immutable data models for DGEMM benchmark statistics and
reports, together with the codec for the persisted JSON report format.

Wire format notes:
    - Order statistics (``medium``, ``maximum``, ``minimum``) are nanoseconds.
    - ``average`` and ``deviation`` are milliseconds.
    - ``layout`` is ``"ROW"`` or ``"COL"``.
    - ``transpose`` entries are ``false`` (no transpose), ``true`` (transpose)
      or ``"CONJ"`` (conjugate transpose).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

# A Sample is one timed kernel invocation, in nanoseconds.
Sample = int

def ns_to_ms(ns: int) -> float:
    """Convert a nanosecond duration to milliseconds."""
    return ns / 1000.0 / 1000.0


class Layout(str, Enum):
    """Matrix storage order."""
    ROW = "ROW"
    COL = "COL"

    @property
    def cblas_value(self) -> int:
        return 101 if self is Layout.ROW else 102

    @property
    def display_name(self) -> str:
        return "Row-major" if self is Layout.ROW else "Column-major"

    @classmethod
    def parse(cls, value: Any) -> "Layout":
        if isinstance(value, Layout):
            return value
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized in ("ROW", "ROW-MAJOR", "ROWMAJOR"):
                return cls.ROW
            if normalized in ("COL", "COLUMN", "COL-MAJOR", "COLUMN-MAJOR", "COLMAJOR"):
                return cls.COL
        if isinstance(value, int) and not isinstance(value, bool):
            if value == 101:
                return cls.ROW
            if value == 102:
                return cls.COL
        raise ValueError(f"unexpected value for layout: {value!r}")


class Transpose(str, Enum):
    """Per-operand transpose flag."""
    NONE = "N"
    TRANS = "T"
    CONJ = "C"

    @property
    def cblas_value(self) -> int:
        return {Transpose.NONE: 111, Transpose.TRANS: 112, Transpose.CONJ: 113}[self]

    @property
    def is_transposed(self) -> bool:
        # Conjugation is a no-op on real data, so CONJ reads the operand transposed.
        return self is not Transpose.NONE

    def to_wire(self) -> Union[bool, str]:
        if self is Transpose.CONJ:
            return "CONJ"
        return self is Transpose.TRANS

    @classmethod
    def parse(cls, value: Any) -> "Transpose":
        if isinstance(value, Transpose):
            return value
        if isinstance(value, bool):
            return cls.TRANS if value else cls.NONE
        if isinstance(value, int):
            mapping = {111: cls.NONE, 112: cls.TRANS, 113: cls.CONJ}
            if value in mapping:
                return mapping[value]
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized in ("N", "NONE", "NOTRANS", "FALSE"):
                return cls.NONE
            if normalized in ("T", "TRANS", "TRUE"):
                return cls.TRANS
            if normalized in ("C", "CONJ", "CONJTRANS"):
                return cls.CONJ
        raise ValueError(f"unexpected value for transpose: {value!r}")


def leading_dimensions(
    layout: Layout,
    transpose_pair: Tuple[Transpose, Transpose],
    m: int,
    n: int,
    k: int,
) -> Tuple[int, int, int]:
    """Tightly packed (lda, ldb, ldc) for op(A) m x k, op(B) k x n and C m x n."""
    trans_a, trans_b = transpose_pair
    row_major = layout is Layout.ROW
    lda = k if trans_a.is_transposed != row_major else m
    ldb = n if trans_b.is_transposed != row_major else k
    ldc = n if row_major else m
    return lda, ldb, ldc


class Statistics(BaseModel):
    """Summary statistics of one benchmark run (or of a merge of runs)."""

    median: Optional[Sample] = Field(None, alias="medium", ge=0, description="Median sample in nanoseconds")
    maximum: Sample = Field(..., ge=0, description="Slowest sample in nanoseconds")
    minimum: Sample = Field(..., ge=0, description="Fastest sample in nanoseconds")
    average_ms: float = Field(..., alias="average", ge=0.0, description="Mean execution time in milliseconds")
    deviation_ms: float = Field(..., alias="deviation", ge=0.0, description="Population standard deviation in milliseconds")

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "medium": 1_204_113,
                "maximum": 1_350_002,
                "minimum": 1_150_876,
                "average": 1.23,
                "deviation": 0.05,
            }
        },
    )

    @model_validator(mode="after")
    def _check_order(self) -> "Statistics":
        if self.minimum > self.maximum:
            raise ValueError(f"minimum ({self.minimum}) exceeds maximum ({self.maximum})")
        if self.median is not None and not (self.minimum <= self.median <= self.maximum):
            raise ValueError(
                f"median ({self.median}) outside [{self.minimum}, {self.maximum}]"
            )
        return self

    @property
    def median_ms(self) -> Optional[float]:
        return ns_to_ms(self.median) if self.median is not None else None

    @property
    def maximum_ms(self) -> float:
        return ns_to_ms(self.maximum)

    @property
    def minimum_ms(self) -> float:
        return ns_to_ms(self.minimum)


class Report(BaseModel):
    """Persisted summary of one benchmark run; raw samples are discarded."""

    name: str = Field(..., description="Kernel name (source file name)")
    dimensions: Tuple[int, int, int] = Field(..., description="(m, n, k)")
    repeat_count: int = Field(..., alias="repeats", ge=1, description="Number of timed repeats")
    alpha: float
    beta: float
    layout: Layout
    transpose_pair: Tuple[Transpose, Transpose] = Field(..., alias="transpose")
    statistics: Statistics

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("dimensions")
    @classmethod
    def _check_dimensions(cls, v: Tuple[int, int, int]) -> Tuple[int, int, int]:
        if any(d < 0 for d in v):
            raise ValueError(f"dimensions must be non-negative, got {v}")
        return v

    @field_validator("layout", mode="before")
    @classmethod
    def _parse_layout(cls, v: Any) -> Layout:
        return Layout.parse(v)

    @field_validator("transpose_pair", mode="before")
    @classmethod
    def _parse_transpose(cls, v: Any) -> Tuple[Transpose, Transpose]:
        if not isinstance(v, (list, tuple)) or len(v) != 2:
            raise ValueError("transpose must be a pair")
        return (Transpose.parse(v[0]), Transpose.parse(v[1]))

    @field_serializer("transpose_pair")
    def _serialize_transpose(self, v: Tuple[Transpose, Transpose]) -> List[Union[bool, str]]:
        return [v[0].to_wire(), v[1].to_wire()]

    @property
    def parameters(self) -> Tuple[Any, ...]:
        """Fields that must agree for two reports to be mergeable."""
        return (self.dimensions, self.alpha, self.beta, self.layout, self.transpose_pair)

    @property
    def ops(self) -> float:
        m, n, k = self.dimensions
        return 2.0 * (m * n * k)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Report":
        return cls.model_validate_json(text)
