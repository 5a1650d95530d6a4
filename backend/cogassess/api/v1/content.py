"""
Content generation endpoints.
"""
from functools import lru_cache

from fastapi import APIRouter, Depends

from cogassess.schemas.content import GeneratedContent, GenerationRequest
from cogassess.services.content_generator import ContentGenerator

router = APIRouter()


@lru_cache
def get_content_generator() -> ContentGenerator:
    return ContentGenerator.from_settings()


@router.post("/generate", response_model=GeneratedContent)
def generate_content(
    request: GenerationRequest,
    generator: ContentGenerator = Depends(get_content_generator),
) -> GeneratedContent:
    """
    Generate age-appropriate questions for a cognitive domain.

    Falls back to the static question bank when generation is not
    configured or fails; check `source` to tell the two apart.
    """
    return generator.generate_or_fallback(request)
