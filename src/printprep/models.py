"""Typed models for printprep page analysis, rasterization and pricing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from printprep.units import pixels_to_mm, points_to_mm

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

TierType = Literal["quantity", "pages"]
TIER_TYPES: tuple[str, ...] = ("quantity", "pages")


@dataclass(frozen=True)
class PageGeometry:
    """Page size in PDF points (72 per inch) at 1:1 scale."""

    width_pt: float
    height_pt: float

    def __post_init__(self) -> None:
        if not self.width_pt > 0 or not self.height_pt > 0:
            raise ValueError(
                f"Page geometry must be strictly positive, got {self.width_pt}x{self.height_pt}pt."
            )

    @property
    def width_mm(self) -> float:
        return points_to_mm(self.width_pt)

    @property
    def height_mm(self) -> float:
        return points_to_mm(self.height_pt)


@dataclass(frozen=True)
class RasterSpec:
    """How a page must be rasterized.

    With ``target_width_mm`` unset the page keeps its native physical size at
    ``dpi``. With it set, the page is scaled so the output pixel width equals
    ``target_width_mm`` expressed in pixels at ``dpi``.
    """

    dpi: int
    target_width_mm: float | None = None

    def __post_init__(self) -> None:
        if self.dpi <= 0:
            raise ValueError(f"dpi must be > 0, got {self.dpi}.")
        if self.target_width_mm is not None and not self.target_width_mm > 0:
            raise ValueError(f"target_width_mm must be > 0, got {self.target_width_mm}.")

    @property
    def mode(self) -> str:
        return "native" if self.target_width_mm is None else "target_width"


@dataclass
class RasterResult:
    """One rendered page bitmap; owned by a single page's processing."""

    image: Any
    render_scale: float
    output_width_px: int
    output_height_px: int
    dpi: int

    @property
    def output_width_mm(self) -> float:
        return pixels_to_mm(self.output_width_px, self.dpi)

    @property
    def output_height_mm(self) -> float:
        return pixels_to_mm(self.output_height_px, self.dpi)

    @property
    def is_closed(self) -> bool:
        return self.image is None

    def close(self) -> None:
        """Release the pixel buffer and zero the reported dimensions."""
        if self.image is not None:
            self.image.close()
        self.image = None
        self.output_width_px = 0
        self.output_height_px = 0

    def __enter__(self) -> RasterResult:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True)
class PageClassification:
    """Color and resolution verdict for one rendered page."""

    is_color: bool
    is_low_res: bool


@dataclass(frozen=True)
class PageAnalysis:
    """Per-page analysis record, in document order."""

    page_number: int
    is_color: bool
    is_low_res: bool
    width_mm: float
    height_mm: float

    @property
    def has_issue(self) -> bool:
        """Low resolution, or no room for bleed beyond A4 width."""
        return self.is_low_res or self.width_mm <= 210


@dataclass(frozen=True)
class QuoteInput:
    """Page counts handed from document analysis to the quote."""

    total_pages: int
    color_count: int
    bw_count: int
    spine: float


@dataclass(frozen=True)
class DocumentStats:
    """Document-level print-readiness statistics."""

    total: int
    color_count: int
    mono_count: int
    color_pages: list[int]
    mono_pages: list[int]
    spine: float
    main_size: str
    is_bleed: bool
    has_low_res: bool

    def to_handoff(self) -> QuoteInput:
        return QuoteInput(
            total_pages=self.total,
            color_count=self.color_count,
            bw_count=self.mono_count,
            spine=self.spine,
        )


@dataclass(frozen=True)
class PriceTier:
    """A volume price break."""

    min_amount: float
    price: float

    def __post_init__(self) -> None:
        if self.min_amount < 0:
            raise ValueError(f"Tier min_amount must be >= 0, got {self.min_amount}.")


@dataclass(frozen=True)
class PriceOption:
    """A named price rule with volume tiers."""

    id: str
    name: str
    base_price: float
    tiers: tuple[PriceTier, ...] = ()
    tier_type: TierType = "quantity"
    sheet_thickness: float | None = None

    def __post_init__(self) -> None:
        if self.tier_type not in TIER_TYPES:
            raise ValueError(f"Unsupported tier type: {self.tier_type}")


@dataclass(frozen=True)
class Addon:
    """A per-copy finishing surcharge."""

    id: str
    name: str
    price_per_unit: float


@dataclass(frozen=True)
class PriceConfig:
    """Read-only price rules supplied to the quote at call time."""

    binding: tuple[PriceOption, ...]
    paper: tuple[PriceOption, ...]
    addons: tuple[Addon, ...]
    color_rate: float = 5.0
    mono_rate: float = 1.0


@dataclass(frozen=True)
class QuoteRequest:
    """Runtime quote inputs."""

    total_pages: int
    color_pages: int
    mono_pages: int
    quantity: int
    binding_id: str
    paper_id: str
    addon_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class Quote:
    """Composed price for one request."""

    binding_price: float
    paper_price: float
    addon_total: float
    unit_price: float
    quantity: int
    total: int


@dataclass(frozen=True)
class QuoteScenario:
    """A saved quote kept for side-by-side comparison."""

    title: str
    specs: str
    total: int
    timestamp: str


@dataclass(frozen=True)
class ProgressEvent:
    """Progress after one page finished, whether it produced output or not."""

    completed: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        return self.completed / self.total


@dataclass(frozen=True)
class ExportedPage:
    """One page written by the export pass."""

    page_number: int
    output_path: str
    thumbnail_path: str | None
    original_width_pt: float
    original_height_pt: float
    render_scale: float
    output_width_px: int
    output_height_px: int
    output_width_mm: float
    output_height_mm: float
    dpi: int


@dataclass(frozen=True)
class PageOutcome:
    """What one pipeline step produced; ``error`` is set when the page was skipped."""

    page_number: int
    analysis: PageAnalysis | None = None
    exported: ExportedPage | None = None
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class AnalysisResult:
    """Analysis pass output for one document."""

    page_count: int
    analyses: list[PageAnalysis]
    stats: DocumentStats
    skipped_pages: list[int] = field(default_factory=list)
    cancelled: bool = False


@dataclass(frozen=True)
class ExportResult:
    """Export pass output for one document."""

    page_count: int
    pages: list[ExportedPage]
    skipped_pages: list[int] = field(default_factory=list)
    cancelled: bool = False


@dataclass(frozen=True)
class DocumentInfo:
    """Cheap pre-flight facts about a PDF."""

    page_count: int
    first_page_width_mm: float | None
    first_page_height_mm: float | None


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a single CLI run."""

    command: str
    path: str
    out: str
    report_dir: str
    dpi: int
    target_width_mm: float | None
    thumbnails: bool
    jpeg_quality: int
    recursive: bool
    verbose: bool


@dataclass(frozen=True)
class FileResult:
    """Processing result for a single PDF."""

    input_path: str
    status: str
    pages_original: int
    pages_processed: int
    pages_skipped: int
    skipped_pages: list[int]
    stats: DocumentStats | None
    page_analyses: list[PageAnalysis]
    exported_pages: list[ExportedPage]
    warnings: list[str]
    errors: list[str]
    timings: dict[str, float]
    document: DocumentInfo | None = None
    issue_pages: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class RunResult:
    """Aggregated result for a full CLI run."""

    timestamp_local: str
    timestamp_utc: str
    user: str
    host: str
    python_version: str
    pypdf_version: str
    pypdfium2_version: str | None
    pillow_version: str
    config: RunConfig
    files: list[FileResult]
    totals: dict[str, int]
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
