"""
Directory Service package for the Employee Directory.

The service fronts a rate-limited upstream employee directory with:
- Rate-limit retries: exponential backoff with jitter in the HTTP transport
- A single in-memory snapshot of all employees, fetched at most once at a time
- Aggregate views (name search, highest salary, top earners) over that snapshot

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP client for the upstream directory.
- app.caching: Snapshot cache and its pass-through counterpart.
- app.directory: Orchestration of reads and writes.
- app.domain: Employee models, validation and top-K selection.
"""
