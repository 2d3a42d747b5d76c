"""
ScriptFlow API

FastAPI backend for browser test automation: AI-proposed script changes that a
human accepts or rejects, versioned script history, test runs handed off to an
execution engine, and AI insights per script.

Workflow:
1. Generate  - create a script (POST /scripts)
2. Enhance   - ask the AI for an improvement, stored as a proposed change-set
3. Validate  - review the diff, then accept (new revision) or reject it
4. Run       - queue a test run; the execution engine reports progress back
5. Insights  - failed runs and on-demand AI analysis append findings

Usage:
1. Create a .env with at least SECRET_KEY and OPENAI_API_KEY (or GEMINI_API_KEY
   with AI_PROVIDER=gemini)
2. Install: pip install -e ".[test]"
3. Run the application: python main.py  (or python start.py for reload)
4. Issue a development token: python scripts/issue_token.py alice
5. Access API docs at: http://localhost:8000/api/v1/docs

Without EXECUTOR_URL, runs are dry-run in process: every non-comment line of the
script counts as a step and a script without steps fails.

SECRET_KEY may be left unset only while ENVIRONMENT=development; a fixed
development key signs tokens then. Any other environment refuses to start.

API Endpoints (all under /api/v1, bearer token required except health):
- GET  /health, /health/readiness
- POST /scripts, GET /scripts[?project_id=], GET|DELETE /scripts/{id}
- GET  /scripts/{id}/revisions
- POST /scripts/{id}/enhance
- GET  /scripts/{id}/changesets[?status=], /scripts/{id}/changesets/{cid}
- POST /scripts/{id}/changesets/{cid}/accept | /reject
- POST /test-runs, GET /test-runs[?script_id=&project_id=], GET /test-runs/{id}
- POST /test-runs/{id}/cancel
- POST /test-runs/{id}/progress   (execution engine callback)
- GET  /scripts/{id}/insights, POST /scripts/{id}/insights/analyze
- GET  /stats[?project_id=]

Errors always come back as {"error": {"code", "message", "details"}}.

Dashboard success_rate is passed / (passed + failed) as a percentage with one
decimal. Queued, running and cancelled runs are left out, unlike the older
dashboard which showed a whole-number passed / all-runs figure.

Architecture Components:

1. Routes (scriptflow/api/routes/):
   - HTTP surface, pydantic validation, auth dependencies

2. Services (scriptflow/services/):
   - Change-set engine, test-run orchestrator, insight aggregator, dashboard

3. Repositories (scriptflow/repositories/):
   - SQLAlchemy storage with compare-and-swap state transitions
   - AI provider adapters (OpenAI-compatible, Gemini)
   - Execution engines (remote over HTTP, local dry run)

4. Models (scriptflow/models/):
   - Pydantic schemas for request/response
   - SQLAlchemy models for database

5. Core (scriptflow/core/):
   - Database, dependency injection, errors, JWT auth, unified diffs

Running tests:
  pytest
"""
