# retrieval/text_index.py
"""Full-text index over plain dict documents, backed by in-RAM tantivy indexes.

Indexed fields go into a tantivy document index scored with BM25. A second
tantivy index holds one document per distinct indexed term; fuzzy term
queries against it expand each query term to the indexed terms it prefixes
or lies within edit distance of. The expansions are then scored against the
document index as boosted term queries, expanded terms counting for less
than exact ones. Stored fields stay on the Python side and are copied onto
each hit.

The index lives for a single request. There is no removal or update.
"""
import logging
import math
import re
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

import tantivy

logger = logging.getLogger(__name__)

PREFIX_WEIGHT = 0.375
FUZZY_WEIGHT = 0.45
MAX_FUZZY = 2  # tantivy builds Levenshtein automata up to distance 2
MAX_TOKEN_BYTES = 40
WRITER_HEAP = 20_000_000
ORD_FIELD = "doc_ord"
TERM_FIELD = "term"

_token_re = re.compile(r"[^\W_]+")

PrefixOption = Union[bool, Callable[[str, int, List[str]], bool]]


def tokenize(value) -> List[str]:
    """Lowercased alphanumeric runs, split the way tantivy's default tokenizer does."""
    if value is None:
        return []
    return [
        t for t in _token_re.findall(str(value).lower())
        if len(t.encode("utf-8")) < MAX_TOKEN_BYTES
    ]


def max_edit_distance(term: str, fuzzy: float) -> int:
    """Fractions scale with term length (rounded half up), whole numbers are absolute."""
    if not fuzzy:
        return 0
    if fuzzy < 1:
        distance = math.floor(len(term) * fuzzy + 0.5)
    else:
        distance = int(fuzzy)
    return min(MAX_FUZZY, distance)


def _ram_searcher(schema: tantivy.Schema, documents: Iterable[tantivy.Document]):
    index = tantivy.Index(schema)
    writer = index.writer(heap_size=WRITER_HEAP, num_threads=1)
    for doc in documents:
        writer.add_document(doc)
    writer.commit()
    index.reload()
    return index.searcher()


class TextIndex:
    def __init__(
        self,
        fields: Iterable[str],
        store_fields: Iterable[str] = (),
        boost: Optional[Dict[str, float]] = None,
        fuzzy: float = 0.2,
        prefix: PrefixOption = True,
    ):
        self.fields = list(fields)
        self.store_fields = list(store_fields)
        self.boost = dict(boost or {})
        self.fuzzy = fuzzy
        self.prefix = prefix

        self._ids: List[str] = []
        self._id_set = set()
        self._stored: List[Dict] = []
        self._tokens: List[Dict[str, List[str]]] = []
        self._vocab: Dict[str, None] = {}  # ordered set

        builder = tantivy.SchemaBuilder()
        for field in self.fields:
            builder.add_text_field(field, stored=False)
        builder.add_integer_field(ORD_FIELD, stored=True)
        self._schema = builder.build()

        builder = tantivy.SchemaBuilder()
        builder.add_text_field(TERM_FIELD, stored=True, tokenizer_name="raw")
        self._vocab_schema = builder.build()

        self._docs_searcher = None
        self._vocab_searcher = None

    def __len__(self) -> int:
        return len(self._ids)

    # ---- indexing ----

    def add(self, document: Dict) -> None:
        doc_id = document.get("id")
        if doc_id is None:
            raise ValueError("document has no id")
        if doc_id in self._id_set:
            raise ValueError(f"duplicate document id: {doc_id}")

        self._ids.append(doc_id)
        self._id_set.add(doc_id)
        self._stored.append({f: document[f] for f in self.store_fields if f in document})
        tokens = {}
        for field in self.fields:
            field_tokens = tokenize(document.get(field))
            if field_tokens:
                tokens[field] = field_tokens
                for t in field_tokens:
                    self._vocab[t] = None
        self._tokens.append(tokens)
        self._docs_searcher = None

    def add_all(self, documents: Iterable[Dict]) -> None:
        for d in documents:
            self.add(d)
        logger.debug("Indexed %d documents, %d distinct terms", len(self._ids), len(self._vocab))

    def _open(self) -> None:
        """Commit buffered documents into fresh tantivy indexes."""
        if self._docs_searcher is not None:
            return
        docs = []
        for ord_, tokens in enumerate(self._tokens):
            doc = tantivy.Document()
            doc.add_integer(ORD_FIELD, ord_)
            for field, field_tokens in tokens.items():
                doc.add_text(field, " ".join(field_tokens))
            docs.append(doc)
        self._docs_searcher = _ram_searcher(self._schema, docs)

        terms = []
        for t in self._vocab:
            doc = tantivy.Document()
            doc.add_text(TERM_FIELD, t)
            terms.append(doc)
        self._vocab_searcher = _ram_searcher(self._vocab_schema, terms)

    # ---- querying ----

    def search(
        self,
        query: str,
        combine_with: str = "OR",
        prefix: Optional[PrefixOption] = None,
        fuzzy: Optional[float] = None,
    ) -> List[Dict]:
        """Ranked hits, best first. Each hit has id, score, terms, queryTerms,
        match and the stored fields of its document."""
        combine_with = combine_with.upper()
        if combine_with not in ("OR", "AND"):
            raise ValueError(f"combine_with must be OR or AND, got {combine_with!r}")
        prefix = self.prefix if prefix is None else prefix
        fuzzy = self.fuzzy if fuzzy is None else fuzzy

        terms = tokenize(query)
        if not terms or not self._ids:
            return []
        self._open()

        per_term = []
        for i, term in enumerate(terms):
            use_prefix = prefix(term, i, terms) if callable(prefix) else bool(prefix)
            per_term.append(self._term_results(term, use_prefix, fuzzy))

        combined = per_term[0]
        for other in per_term[1:]:
            if combine_with == "AND":
                combined = {d: r for d, r in combined.items() if d in other}
            for d, r in other.items():
                if d in combined:
                    self._merge(combined[d], r)
                elif combine_with == "OR":
                    combined[d] = r

        ranked = sorted(combined.items(), key=lambda item: (-item[1]["score"] * len(item[1]["query_terms"]), item[0]))
        hits = []
        for doc, r in ranked:
            hit = {
                "id": self._ids[doc],
                "score": r["score"] * len(r["query_terms"]),
                "terms": list(r["match"]),
                "queryTerms": r["query_terms"],
                "match": r["match"],
            }
            hit.update(self._stored[doc])
            hits.append(hit)
        return hits

    def auto_suggest(self, query: str, limit: Optional[int] = None) -> List[Dict]:
        """Completions for a partially typed query.

        All query terms must match, only the last one as a prefix. Hits are
        grouped by the indexed terms they matched and the group score is the
        mean hit score.
        """
        hits = self.search(
            query,
            combine_with="AND",
            prefix=lambda term, i, terms: i == len(terms) - 1,
        )
        groups: Dict[str, Dict] = {}
        for hit in hits:
            phrase = " ".join(hit["terms"])
            g = groups.get(phrase)
            if g is None:
                groups[phrase] = {"score": hit["score"], "terms": hit["terms"], "count": 1}
            else:
                g["score"] += hit["score"]
                g["count"] += 1

        suggestions = [
            {"suggestion": phrase, "terms": g["terms"], "score": g["score"] / g["count"]}
            for phrase, g in groups.items()
        ]
        suggestions.sort(key=lambda s: s["score"], reverse=True)
        return suggestions if limit is None else suggestions[:limit]

    # ---- internals ----

    def _vocab_matches(self, term: str, distance: int, prefix: bool = False) -> List[str]:
        query = tantivy.Query.fuzzy_term_query(
            self._vocab_schema,
            TERM_FIELD,
            term,
            distance=distance,
            transposition_cost_one=False,
            prefix=prefix,
        )
        searcher = self._vocab_searcher
        result = searcher.search(query, limit=len(self._vocab))
        return [searcher.doc(address).get_first(TERM_FIELD) for _score, address in result.hits]

    def _expand(self, term: str, use_prefix: bool, fuzzy: float) -> Dict[str, float]:
        """Indexed terms reached from a query term, with their weights."""
        expanded: Dict[str, float] = {}
        if term in self._vocab:
            expanded[term] = 1.0
        if not self._vocab:
            return expanded

        if use_prefix:
            for t in self._vocab_matches(term, 0, prefix=True):
                if t not in expanded:
                    distance = len(t) - len(term)
                    expanded[t] = PREFIX_WEIGHT * len(t) / (len(t) + 0.3 * distance)

        for distance in range(1, max_edit_distance(term, fuzzy) + 1):
            for t in self._vocab_matches(term, distance):
                if t not in expanded:
                    expanded[t] = FUZZY_WEIGHT * len(t) / (len(t) + distance)
        return expanded

    def _term_results(self, term: str, use_prefix: bool, fuzzy: float) -> Dict[int, Dict]:
        expanded = self._expand(term, use_prefix, fuzzy)
        if not expanded:
            return {}

        clauses = []
        for t, weight in expanded.items():
            for field in self.fields:
                q = tantivy.Query.term_query(self._schema, field, t)
                boosted = tantivy.Query.boost_query(q, weight * self.boost.get(field, 1.0))
                clauses.append((tantivy.Occur.Should, boosted))

        searcher = self._docs_searcher
        result = searcher.search(tantivy.Query.boolean_query(clauses), limit=len(self._ids))

        results: Dict[int, Dict] = {}
        for score, address in result.hits:
            doc = searcher.doc(address).get_first(ORD_FIELD)
            results[doc] = {
                "score": score,
                "query_terms": [term],
                "match": self._matched(doc, expanded),
            }
        return results

    def _matched(self, doc: int, expanded: Dict[str, float]) -> Dict[str, List[str]]:
        """Expanded term -> fields of `doc` that contain it."""
        tokens = self._tokens[doc]
        fields_by_term: Dict[str, Set[str]] = {}
        match: Dict[str, List[str]] = {}
        for field, field_tokens in tokens.items():
            for t in field_tokens:
                fields_by_term.setdefault(t, set()).add(field)
        for t in expanded:
            if t in fields_by_term:
                match[t] = [f for f in self.fields if f in fields_by_term[t]]
        return match

    @staticmethod
    def _merge(into: Dict, other: Dict) -> None:
        into["score"] += other["score"]
        for t in other["query_terms"]:
            if t not in into["query_terms"]:
                into["query_terms"].append(t)
        for term, fields in other["match"].items():
            target = into["match"].setdefault(term, [])
            for f in fields:
                if f not in target:
                    target.append(f)
