"""API tests for production bible upload and validation."""

import pytest
from httpx import AsyncClient

from muse_ai.core.database.entities.production_bible import ProductionBibleDocument, ProductionBibleRule
from muse_ai.core.database.entities.story_projects import StoryProject
from muse_ai.core.database.repositories import ProductionBibleRepository
from muse_ai.server.services.production_bible_service import NO_RULES_MESSAGE

pytestmark = pytest.mark.asyncio

HEADERS = {"X-User-Id": "user-1"}
BASE = "/api/v1/production-bible"

STYLE_GUIDE = b"Font: Use Arial font in every heading.\n"


async def _upload(
    client: AsyncClient, body: bytes = STYLE_GUIDE, filename: str = "bible.md", headers=HEADERS, project_id=None
):
    params = {"filename": filename}
    if project_id is not None:
        params["project_id"] = project_id
    return await client.post(
        f"{BASE}/documents",
        params=params,
        content=body,
        headers={**(headers or {}), "Content-Type": "text/plain"},
    )


class TestUpload:
    async def test_upload_extracts_rules(self, client: AsyncClient):
        response = await _upload(client)

        assert response.status_code == 201
        document = response.json()
        assert document["parsing_status"] == "completed"
        assert document["file_type"] == "md"
        assert document["file_size"] == len(STYLE_GUIDE)
        assert document["extracted_rules_count"] == 1
        rule = document["rules"][0]
        assert rule["title"] == "Use Arial font in every heading"
        assert rule["rule_type"] == "format"
        assert rule["action"] == "suggest"
        assert rule["pattern"] == r"\b(Times|Arial|Calibri|Helvetica)\b"

    async def test_binary_formats_are_rejected(self, client: AsyncClient):
        response = await _upload(client, filename="bible.pdf")

        assert response.status_code == 400
        assert response.json()["error_type"] == "UnsupportedDocumentTypeError"
        listed = await client.get(f"{BASE}/documents", headers=HEADERS)
        assert listed.json() == []

    async def test_undecodable_text_is_stored_as_failed(self, client: AsyncClient):
        response = await _upload(client, body=b"\xff\xfe\xfa broken", filename="notes.txt")

        assert response.status_code == 201
        document = response.json()
        assert document["parsing_status"] == "failed"
        assert "notes.txt" in document["parsing_error"]
        assert document["rules"] == []

    async def test_upload_to_own_project(self, client: AsyncClient, project):
        response = await _upload(client, project_id=project.id)

        assert response.status_code == 201
        assert response.json()["story_project_id"] == project.id

    @pytest.mark.parametrize("owner", ["user-2", None])
    async def test_upload_to_unknown_or_foreign_project(self, client: AsyncClient, session, owner):
        project_id = 9999
        if owner is not None:
            foreign = StoryProject(user_id=owner, title="Someone else's story")
            session.add(foreign)
            await session.commit()
            await session.refresh(foreign)
            project_id = foreign.id

        response = await _upload(client, project_id=project_id)

        assert response.status_code == 404
        assert response.json()["error_type"] == "ProjectNotFoundError"
        listed = await client.get(f"{BASE}/documents", headers=HEADERS)
        assert listed.json() == []

    async def test_requires_user(self, client: AsyncClient):
        response = await _upload(client, headers=None)
        assert response.status_code == 401


class TestDocuments:
    async def test_list_and_get(self, client: AsyncClient):
        uploaded = (await _upload(client)).json()

        listed = await client.get(f"{BASE}/documents", headers=HEADERS)
        fetched = await client.get(f"{BASE}/documents/{uploaded['id']}", headers=HEADERS)

        assert [d["id"] for d in listed.json()] == [uploaded["id"]]
        assert fetched.json()["name"] == "bible.md"
        assert len(fetched.json()["rules"]) == 1

    async def test_other_users_document_is_not_found(self, client: AsyncClient):
        uploaded = (await _upload(client)).json()

        response = await client.get(f"{BASE}/documents/{uploaded['id']}", headers={"X-User-Id": "user-2"})

        assert response.status_code == 404
        assert response.json()["error_type"] == "DocumentNotFoundError"


class TestValidate:
    async def test_without_rules(self, client: AsyncClient, transcript):
        response = await client.post(
            f"{BASE}/validate",
            json={"transcriptId": transcript.id, "content": {"executiveSummary": "Anything"}},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["message"] == NO_RULES_MESSAGE
        assert response.json()["validation"]["is_valid"] is True

    async def test_suggestions_from_uploaded_rules(self, client: AsyncClient, transcript):
        await _upload(client)

        response = await client.post(
            f"{BASE}/validate",
            json={"transcriptId": transcript.id, "content": {"narrativeStructure": "Titles are set in Arial."}},
            headers=HEADERS,
        )

        validation = response.json()["validation"]
        assert validation["is_valid"] is True
        assert [(s["rule_title"], s["section"]) for s in validation["suggestions"]] == [
            ("Use Arial font in every heading", "Narrative Structure")
        ]
        assert response.json()["modified_content"] is None

    async def test_apply_rules(self, client: AsyncClient, session, transcript):
        await ProductionBibleRepository(session).add_document_with_rules(
            ProductionBibleDocument(user_id="user-1", name="House style", original_filename="style.md", file_type="md"),
            [
                ProductionBibleRule(
                    document_id=0,
                    rule_type="content",
                    title="No drafts",
                    description="Documents are final",
                    pattern="draft",
                    replacement="final",
                    action="apply",
                    priority="medium",
                )
            ],
        )

        response = await client.post(
            f"{BASE}/validate",
            json={
                "transcriptId": transcript.id,
                "content": {"executiveSummary": "A rough draft of the story."},
                "applyRules": True,
                "saveApplications": True,
            },
            headers=HEADERS,
        )

        body = response.json()
        assert body["rules_applied"] == 1
        assert body["modified_content"]["executiveSummary"] == "A rough final of the story."
        assert body["applications"][0]["document_section"] == "Executive Summary"

    async def test_foreign_transcript_is_forbidden(self, client: AsyncClient, transcript):
        response = await client.post(
            f"{BASE}/validate",
            json={"transcriptId": transcript.id, "content": {}},
            headers={"X-User-Id": "user-2"},
        )
        assert response.status_code == 403
