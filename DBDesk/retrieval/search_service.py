# retrieval/search_service.py
import logging
from typing import Dict, List

from config.settings import Settings
from domain.ranking import categorize_results
from infra.database import Database
from infra.metadata_store import SearchMetadataStore
from pipelines.collect_documents import collect_documents
from retrieval.text_index import TextIndex

logger = logging.getLogger(__name__)

INDEX_FIELDS = ["text", "name"]
STORE_FIELDS = ["type", "name", "tableName", "dataId", "raw", "category"]
SUGGEST_STORE_FIELDS = ["type", "name", "tableName", "dataId", "category"]


class SearchService:
    """Global search over table names and searchable row content.

    The index is rebuilt from the live database on every call and thrown
    away afterwards, so results always reflect the current data at the cost
    of a full scan per request.
    """

    def __init__(self, db: Database, metadata: SearchMetadataStore, settings: Settings):
        self.db = db
        self.metadata = metadata
        self.fuzzy = settings.SEARCH_FUZZY
        self.prefix = settings.SEARCH_PREFIX
        self.boost = {"name": settings.SEARCH_NAME_BOOST}
        self.suggest_limit = settings.SUGGEST_LIMIT

    def _build_index(self, store_fields: List[str]) -> TextIndex:
        index = TextIndex(
            fields=INDEX_FIELDS,
            store_fields=store_fields,
            boost=self.boost,
            fuzzy=self.fuzzy,
            prefix=self.prefix,
        )
        index.add_all(collect_documents(self.db, self.metadata))
        return index

    def search(self, query: str) -> Dict[str, List[Dict]]:
        hits = self._build_index(STORE_FIELDS).search(query)
        logger.debug("Search %r matched %d documents", query, len(hits))
        return categorize_results(hits, query)

    def suggest(self, query: str) -> List[Dict]:
        return self._build_index(SUGGEST_STORE_FIELDS).auto_suggest(query, limit=self.suggest_limit)
