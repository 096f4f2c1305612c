"""
End-to-end composition: AI response text -> extracted data -> visualizations.

The AI text source may hand over a complete string or a stream of fragments.
The pipeline only ever runs on the finished, concatenated text.
"""

from typing import AsyncIterable, Iterable, List, Optional
import logging

from response_extractor.extractor import extract_data_from_response
from visualization.chart_templates import VisualizationData
from visualization.generator import generate_visualizations

logger = logging.getLogger(__name__)


def parse_response_for_visualizations(
    ai_response: str,
    conversation_context: str = ""
) -> List[VisualizationData]:
    """Extract data from a complete AI response and select charts for it."""
    extracted = extract_data_from_response(ai_response)
    return generate_visualizations(extracted, conversation_context)


def collect_response(chunks: Iterable[Optional[str]]) -> str:
    """Join a synchronous stream of text fragments; empty fragments are skipped."""
    return "".join(chunk for chunk in chunks if chunk)


async def acollect_response(chunks: AsyncIterable[Optional[str]]) -> str:
    """Join an async stream of text fragments; empty fragments are skipped."""
    parts = []
    async for chunk in chunks:
        if chunk:
            parts.append(chunk)
    return "".join(parts)


async def visualize_stream(
    chunks: AsyncIterable[Optional[str]],
    conversation_context: str = ""
) -> List[VisualizationData]:
    """
    Wait for the stream to finish, then run the pipeline once on the full text.
    Partial text is never visualized.
    """
    text = await acollect_response(chunks)
    logger.debug(f"Stream complete ({len(text)} chars), generating visualizations")
    return parse_response_for_visualizations(text, conversation_context)
