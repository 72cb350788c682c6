"""Text extraction CLI."""

import mimetypes
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from notoextract.config import settings
from notoextract.logging_setup import configure_logging
from notoextract.models import DocumentType, OCRProviderConfig
from notoextract.pipeline.stage_ocr import TesseractOCR
from notoextract.pipeline.stage_remote import OCRSpaceClient
from notoextract.pipeline.stage_split import PDFSplitter
from notoextract.service import TextExtractionService

app = typer.Typer(
    name="notoextract",
    help="Extract text from typed and handwritten documents",
    add_completion=False,
)
console = Console()


def _guess_mime_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


@app.command()
def extract(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to extract text from"),
    mime_type: Optional[str] = typer.Option(None, help="MIME type (guessed from the extension if omitted)"),
    handwritten: bool = typer.Option(False, "--handwritten", help="Send to remote handwriting OCR"),
    details: bool = typer.Option(False, "--details", help="Show extraction method and chunk outcomes"),
) -> None:
    """Extract text from a single document."""
    configure_logging(settings.log_level)

    mime_type = mime_type or _guess_mime_type(path)
    document_type = DocumentType.HANDWRITTEN if handwritten else DocumentType.TYPED

    console.print(f"[bold blue]Extracting:[/bold blue] {path.name} [dim]({mime_type}, {document_type.value})[/dim]")

    with TextExtractionService(settings) as service:
        result = service.extract_result(path.read_bytes(), path.name, mime_type, document_type)

    if details:
        table = Table(title="Extraction")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Strategy", result.strategy.value if result.strategy else "-")
        table.add_row("Method", result.method.value)
        table.add_row("Diagnostic", "yes" if result.is_diagnostic else "no")
        table.add_row("Pages", str(result.page_count) if result.page_count is not None else "-")
        table.add_row("Characters", str(result.char_count))
        console.print(table)

        if result.chunk_outcomes:
            chunks = Table(title="Chunks")
            chunks.add_column("#", justify="right")
            chunks.add_column("Pages")
            chunks.add_column("Status")
            chunks.add_column("Size (KB)", justify="right")
            chunks.add_column("Reason")
            for outcome in result.chunk_outcomes:
                status_style = "green" if outcome.ok else "red"
                chunks.add_row(
                    str(outcome.sequence_number),
                    outcome.page_range.label,
                    f"[{status_style}]{outcome.status.value}[/{status_style}]",
                    f"{outcome.size_bytes / 1024:.1f}" if outcome.size_bytes else "-",
                    outcome.reason or "",
                )
            console.print(chunks)

    style = "yellow" if result.is_diagnostic else None
    console.print(result.text, style=style, markup=False, highlight=False)


@app.command()
def status() -> None:
    """Show remote OCR settings and local OCR availability."""
    console.print("[bold blue]Text Extraction Status[/bold blue]")
    console.print()

    config = OCRProviderConfig.from_settings(settings)
    with OCRSpaceClient(config) as client:
        info = client.status()

    table = Table(title="Remote OCR")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Available", "[green]yes[/green]" if info["available"] else "[yellow]demo key only[/yellow]")
    table.add_row("Engine", str(info["engine"]))
    table.add_row("Max file size", info["max_file_size"])
    table.add_row("Max pages per request", str(info["max_pages_per_request"]))
    table.add_row("API URL", info["api_url"])
    console.print(table)

    tesseract = TesseractOCR()
    local = Table(title="Local OCR fallback")
    local.add_column("Setting", style="cyan")
    local.add_column("Value")
    local.add_row("Tesseract", "[green]found[/green]" if tesseract.is_available() else "[red]not found[/red]")
    local.add_row("Language", tesseract.language)
    local.add_row("Max pages", str(settings.fallback_max_pages))
    local.add_row("Render DPI", str(settings.fallback_render_dpi))
    console.print(local)

    console.print(f"[dim]Chunk concurrency: {settings.ocr_chunk_concurrency}[/dim]")


@app.command()
def plan(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF to plan chunks for"),
) -> None:
    """Show how a PDF would be chunked for remote OCR, without submitting it."""
    splitter = PDFSplitter(
        size_budget=settings.ocr_max_payload_bytes,
        page_ceiling=settings.ocr_max_pages_per_request,
    )

    try:
        chunk_plan = splitter.plan(path.read_bytes())
    except Exception as e:
        console.print(f"[red]Cannot plan {path.name}: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold blue]Chunk plan:[/bold blue] {path.name}")
    console.print(
        f"[dim]{chunk_plan.total_pages} pages, {chunk_plan.total_bytes / 1024:.1f} KB, "
        f"{chunk_plan.avg_bytes_per_page / 1024:.1f} KB/page, "
        f"{chunk_plan.pages_per_chunk} pages per chunk[/dim]"
    )

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Pages")
    table.add_column("Page count", justify="right")
    for number, page_range in enumerate(chunk_plan.ranges, start=1):
        table.add_row(str(number), page_range.label, str(page_range.page_count))
    console.print(table)


if __name__ == "__main__":
    app()
