import pytest

from app.services.slugs import SlugExhaustedError, ensure_unique_slug, slugify


def test_slugify_normalizes_text():
    assert slugify("Acme Traders Ltd.") == "acme-traders-ltd"
    assert slugify("  Café  Nairobi  ") == "cafe-nairobi"
    assert slugify("---") == ""


def _taken(*slugs):
    checked: list[str] = []

    async def exists(candidate: str) -> bool:
        checked.append(candidate)
        return candidate in slugs

    return exists, checked


@pytest.mark.asyncio
async def test_free_slug_is_used_as_is():
    exists, checked = _taken()
    assert await ensure_unique_slug("Acme Traders", exists) == "acme-traders"
    assert checked == ["acme-traders"]


@pytest.mark.asyncio
async def test_taken_slug_gets_numeric_suffix():
    exists, checked = _taken("acme", "acme-1")
    assert await ensure_unique_slug("Acme", exists) == "acme-2"
    assert checked == ["acme", "acme-1", "acme-2"]


@pytest.mark.asyncio
async def test_exhausted_attempts_raise():
    exists, checked = _taken("acme", "acme-1", "acme-2")
    with pytest.raises(SlugExhaustedError):
        await ensure_unique_slug("Acme", exists, max_attempts=3)
    assert len(checked) == 3


@pytest.mark.asyncio
async def test_invalid_arguments_raise_value_error():
    exists, _ = _taken()
    with pytest.raises(ValueError):
        await ensure_unique_slug("Acme", exists, max_attempts=0)
    with pytest.raises(ValueError):
        await ensure_unique_slug("!!!", exists)
