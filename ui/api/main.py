"""FastAPI layer that exposes search and catalog reindexing."""
from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query as FastAPIQuery
from pydantic import BaseModel, Field

from application.services.result_formatter import format_results
from domain.entities import CatalogRecord, CollectionHint, SearchOutcome
from infrastructure.config import Container, ContainerConfig, build_default_container
from ui.logging_utils import setup_logging


class RecordPayload(BaseModel):
    id: str
    canonical_code: str | None = None
    display_name: str | None = None
    alt_name: str | None = None
    category: list[str] = Field(default_factory=list)
    function: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    supplier: str | None = None
    cost: str | None = None
    description: str | None = None


class UpsertRequest(BaseModel):
    collection: str
    records: list[RecordPayload]


class UpsertResponse(BaseModel):
    total: int
    indexed: int
    chunks: int
    errors: list[dict[str, str | None]]


class MatchPayload(BaseModel):
    match_type: str
    raw_score: float
    collection: str | None = None


class ResultPayload(BaseModel):
    record_id: str
    fused_score: float
    source_collection: str | None = None
    availability: str | None = None
    canonical_code: str | None = None
    display_name: str | None = None
    matches: list[MatchPayload]


class SearchResponse(BaseModel):
    query: str
    status: str
    intent: str | None = None
    confidence: float | None = None
    routing: str | None = None
    results: list[ResultPayload]
    summary: str
    latency_ms: float


def _serialize(outcome: SearchOutcome) -> SearchResponse:
    results = []
    for result in outcome.results:
        record = result.record
        results.append(
            ResultPayload(
                record_id=result.record_id,
                fused_score=result.fused_score,
                source_collection=result.source_collection,
                availability=result.availability.value if result.availability else None,
                canonical_code=(record.canonical_code if record else None) or result.metadata.get("canonical_code"),
                display_name=(record.display_name if record else None) or result.metadata.get("display_name"),
                matches=[
                    MatchPayload(match_type=m.match_type.value, raw_score=m.raw_score, collection=m.collection)
                    for m in result.contributing_matches
                ],
            )
        )
    classification = outcome.classification
    return SearchResponse(
        query=outcome.query,
        status=outcome.status,
        intent=classification.intent.value if classification else None,
        confidence=classification.confidence if classification else None,
        routing=outcome.routing.mode.value if outcome.routing else None,
        results=results,
        summary=format_results(outcome),
        latency_ms=outcome.latency_ms,
    )


def create_app(container: Container | None = None) -> FastAPI:
    setup_logging()
    app = FastAPI(title="MaterialSearch API")
    app.state.container = container or build_default_container(ContainerConfig.from_env())

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/search", response_model=SearchResponse)
    async def search_endpoint(
        q: str = FastAPIQuery("", description="User query"),
        top_k: int = FastAPIQuery(10, ge=1, le=100),
        collection: CollectionHint | None = FastAPIQuery(None, description="Routing override"),
    ) -> SearchResponse:
        outcome = await app.state.container.orchestrator.search_async(q, top_k=top_k, collection_hint=collection)
        response = _serialize(outcome)
        if outcome.unavailable:
            raise HTTPException(status_code=503, detail=response.model_dump())
        return response

    @app.post("/records", response_model=UpsertResponse)
    def upsert_records(payload: UpsertRequest) -> UpsertResponse:
        container: Container = app.state.container
        try:
            collection = container.collection(payload.collection)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        records = [CatalogRecord.from_mapping(item.model_dump()) for item in payload.records]
        for record in records:
            if record.id:
                container.catalog_store.add(record, collection=collection.name)
        report = container.reindex_service.reindex_batch(records, collection)
        return UpsertResponse(
            total=report.total,
            indexed=report.indexed,
            chunks=report.chunks,
            errors=[{"record_id": error.record_id, "reason": error.reason} for error in report.errors],
        )

    return app


app = create_app()
