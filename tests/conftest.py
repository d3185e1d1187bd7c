# tests/conftest.py

import pytest

from narrator_kit.corpus import (
    DocumentTreeParser,
    InMemoryDocumentRepository,
    SourceDocument,
    TextPage,
)

INTRO_MARKUP = "<h1>Intro</h1><p>Welcome.</p><h2>The Inn</h2><p>A tavern.</p>"
FOREST_MARKUP = (
    "<h2>The Dark Forest</h2><p>Tall trees hide goblins.</p>"
    "<hr><p>The goblins ambush the party near the river.</p>"
)


@pytest.fixture
def adventure() -> SourceDocument:
    """Two content pages plus an empty one that parsing drops."""
    return SourceDocument(
        id="adv1",
        name="Lost Mine",
        units=(
            TextPage(id="p2", name="Wilderness", content=FOREST_MARKUP, sort=200),
            TextPage(id="p1", name="Introduction", content=INTRO_MARKUP, sort=100),
            TextPage(id="p0", name="Blank", content="<p>  </p>", sort=50),
        ),
    )


@pytest.fixture
def repository(adventure: SourceDocument) -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository([adventure])


@pytest.fixture
def parser(repository: InMemoryDocumentRepository) -> DocumentTreeParser:
    return DocumentTreeParser(repository)
