"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Summary


REQUEST_COUNTER = Counter(
	"roomix_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"roomix_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

ROOMMATE_PROFILE_WRITES = Counter(
	"roomix_roommate_profile_writes_total",
	"Roommate profile upserts and deletes",
	["op"],
)

ROOMMATE_MATCH_REQUESTS = Counter(
	"roomix_roommate_match_requests_total",
	"Roommate match rankings computed",
)

ROOMMATE_MATCH_CANDIDATES = Summary(
	"roomix_roommate_match_candidates",
	"Candidates scored per match ranking",
)

DIRECTORY_QUERIES = Counter(
	"roomix_directory_queries_total",
	"Directory lookups by entity kind and query type",
	["kind", "query"],
)

DIRECTORY_SUBMISSIONS = Counter(
	"roomix_directory_submissions_total",
	"Directory entities created",
	["kind"],
)

DIRECTORY_MODERATION = Counter(
	"roomix_directory_moderation_total",
	"Utility moderation decisions applied",
	["decision"],
)

DIRECTORY_REVIEWS = Counter(
	"roomix_directory_reviews_total",
	"Utility reviews appended",
)

STORE_WRITE_RETRIES = Counter(
	"roomix_store_write_retries_total",
	"Optimistic write retries caused by concurrent modification",
	["kind"],
)

STORE_WRITE_CONFLICTS = Counter(
	"roomix_store_write_conflicts_total",
	"Optimistic writes abandoned after exhausting retries",
	["kind"],
)

REDIS_UP = Gauge("roomix_redis_up", "Redis readiness state (1 up, 0 down)")
REDIS_LATENCY = Histogram(
	"roomix_redis_ping_seconds",
	"Redis readiness ping latency",
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)

POSTGRES_UP = Gauge("roomix_postgres_up", "Postgres readiness state (1 up, 0 down)")
POSTGRES_LATENCY = Histogram(
	"roomix_postgres_ping_seconds",
	"Postgres readiness query latency",
	buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_profile_write(op: str) -> None:
	ROOMMATE_PROFILE_WRITES.labels(op=op).inc()


def observe_match(candidates: int) -> None:
	ROOMMATE_MATCH_REQUESTS.inc()
	ROOMMATE_MATCH_CANDIDATES.observe(candidates)


def inc_directory_query(kind: str, query: str) -> None:
	DIRECTORY_QUERIES.labels(kind=kind, query=query).inc()


def inc_directory_submission(kind: str) -> None:
	DIRECTORY_SUBMISSIONS.labels(kind=kind).inc()


def inc_moderation(decision: str) -> None:
	DIRECTORY_MODERATION.labels(decision=decision).inc()


def inc_review() -> None:
	DIRECTORY_REVIEWS.inc()


def inc_store_retry(kind: str) -> None:
	STORE_WRITE_RETRIES.labels(kind=kind).inc()


def inc_store_conflict(kind: str) -> None:
	STORE_WRITE_CONFLICTS.labels(kind=kind).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)
