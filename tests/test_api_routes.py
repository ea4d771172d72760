import io
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from api_handler import UpstreamAPIError

HEADERS = {"X-API-Key": "sk-test"}

GENERATED_RESPONSE = (
    'Sure! {"name": "Tamsin", "bio": ["A wandering bard"], "lore": [], "topics": [], '
    '"style": {}, "adjectives": ["Curious"], "messageExamples": [], "postExamples": [],}'
)


def test_index_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["endpoints"]["fix_json"] == "/api/fix-json"
    assert payload["endpoints"]["backups"] == "/api/backups"


def test_fix_json_returns_repaired_character(client):
    response = client.post("/api/fix-json", json={"content": 'Sure {"bio": ["Hi"],}'})

    assert response.status_code == 200
    character = response.get_json()["character"]
    assert character["bio"] == ["Hi."]
    assert character["knowledge"] == []
    assert list(character)[:3] == ["name", "clients", "modelProvider"]


def test_fix_json_requires_content(client):
    response = client.post("/api/fix-json", json={})

    assert response.status_code == 400
    assert response.get_json()["error"] == "Content is required"


def test_fix_json_reports_unparseable_content(client):
    response = client.post("/api/fix-json", json={"content": "garbage"})

    assert response.status_code == 422
    assert "no JSON object found" in response.get_json()["error"]


def test_generate_character_route(client, fake_generator):
    fake_generator.response = GENERATED_RESPONSE

    response = client.post(
        "/api/generate-character",
        json={"prompt": "A bard", "model": "openai/gpt-4o"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["character"]["name"] == "Tamsin"
    assert payload["character"]["adjectives"] == ["curious"]
    assert payload["rawPrompt"] == "A bard"
    assert payload["rawResponse"] == GENERATED_RESPONSE
    assert fake_generator.requested == [("openai/gpt-4o", "sk-test")]


def test_generate_character_requires_api_key(client, fake_generator):
    response = client.post("/api/generate-character", json={"prompt": "A bard", "model": "m"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "API key is required"
    assert fake_generator.calls == []


def test_generate_character_maps_upstream_failure(client, fake_generator):
    fake_generator.error = UpstreamAPIError("No auth credentials found")

    response = client.post(
        "/api/generate-character",
        json={"prompt": "A bard", "model": "m"},
        headers=HEADERS,
    )

    assert response.status_code == 502
    assert response.get_json()["error"] == "No auth credentials found"


def test_generate_character_maps_malformed_output(client, fake_generator):
    fake_generator.response = "I'd rather not."

    response = client.post(
        "/api/generate-character",
        json={"prompt": "A bard", "model": "m"},
        headers=HEADERS,
    )

    assert response.status_code == 422


def test_refine_character_route_keeps_knowledge(client, fake_generator):
    fake_generator.response = json.dumps({"name": "Other", "bio": ["Sharper"], "knowledge": ["Made up."]})
    current = {"name": "Ada", "knowledge": ["Fact."], "bio": ["Old."]}

    response = client.post(
        "/api/refine-character",
        json={"prompt": "Sharpen her wit", "model": "m", "currentCharacter": current},
        headers=HEADERS,
    )

    assert response.status_code == 200
    character = response.get_json()["character"]
    assert character["name"] == "Ada"
    assert character["knowledge"] == ["Fact."]
    assert character["bio"] == ["Sharper."]


def test_refine_character_requires_current_character(client, fake_generator):
    response = client.post(
        "/api/refine-character",
        json={"prompt": "Sharpen", "model": "m"},
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert "current character" in response.get_json()["error"]


def test_process_files_extracts_and_appends_knowledge(client):
    response = client.post(
        "/api/process-files",
        data={
            "files": [
                (io.BytesIO(b"Alpha fact. - skip this. Beta"), "notes.txt"),
                (io.BytesIO(b"\x89PNG\r\n"), "image.png"),
            ],
            "knowledge": json.dumps(["Old."]),
        },
        content_type="multipart/form-data",
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["knowledge"] == ["Alpha fact.", "Beta."]
    assert payload["combined"] == ["Old.", "Alpha fact.", "Beta."]


def test_process_files_requires_uploads(client):
    response = client.post("/api/process-files", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["error"] == "No files uploaded"


def test_process_files_rejects_invalid_existing_knowledge(client):
    response = client.post(
        "/api/process-files",
        data={"files": [(io.BytesIO(b"Fact."), "notes.txt")], "knowledge": "{not json"},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400


def test_build_character_from_form_fields(client):
    response = client.post(
        "/api/build-character",
        data={
            "name": "Ada",
            "bio": "Born at sea. Raised by wolves!",
            "style_chat": "Speaks in riddles",
            "clients-0": "discord",
            "clients-1": "discord",
            "voice_model": "en_US-male-medium",
            "adjectives-0": "Brave",
            "adjectives-1": "quick Witted",
            "people-0": " Bob ",
            "knowledge-0": "Knows knots",
            "message_examples-0-user": "Hello",
            "message_examples-0-character": "Ahoy",
            "message_examples-1-user": "",
            "message_examples-1-character": "",
        },
    )

    assert response.status_code == 200
    character = response.get_json()["character"]
    assert character["name"] == "Ada"
    assert character["bio"] == ["Born at sea.", "Raised by wolves."]
    assert character["style"] == {"all": [], "chat": ["Speaks in riddles."], "post": []}
    assert character["clients"] == ["discord"]
    assert character["settings"] == {"secrets": {}, "voice": {"model": "en_US-male-medium"}}
    assert character["adjectives"] == ["brave", "quick", "witted"]
    assert character["people"] == ["Bob"]
    assert character["knowledge"] == ["Knows knots."]
    assert character["plugins"] == []
    assert character["messageExamples"] == [
        [
            {"user": "{{user1}}", "content": {"text": "Hello"}},
            {"user": "Ada", "content": {"text": "Ahoy"}},
        ]
    ]


def test_build_character_uses_current_knowledge_without_typed_lines(client):
    response = client.post(
        "/api/build-character",
        data={"name": "Ada", "current_knowledge": json.dumps(["From a file."])},
    )

    assert response.status_code == 200
    assert response.get_json()["character"]["knowledge"] == ["From a file."]


def test_build_character_rejects_invalid_current_knowledge(client):
    response = client.post("/api/build-character", data={"current_knowledge": "[1, 2]"})

    assert response.status_code == 400
    assert "current_knowledge" in response.get_json()["fields"]


def test_backup_lifecycle(client):
    created = client.post(
        "/api/backups",
        json={"name": "My Hero", "data": {"name": "Ada", "bio": ["Hi"]}},
    )
    assert created.status_code == 201
    backup = created.get_json()["backup"]
    assert backup["name"] == "My Hero"
    assert backup["data"]["name"] == "Ada"
    assert backup["data"]["bio"] == ["Hi."]
    assert backup["timestamp"]

    listed = client.get("/api/backups").get_json()["backups"]
    assert [entry["name"] for entry in listed] == ["My Hero"]

    assert client.get("/api/backups/my_hero").status_code == 200

    renamed = client.post("/api/backups/my_hero/rename", json={"name": "Final Hero"})
    assert renamed.status_code == 200
    assert renamed.get_json()["backup"]["name"] == "Final Hero"
    assert client.get("/api/backups/my_hero").status_code == 404
    assert client.get("/api/backups/final_hero").get_json()["backup"]["data"]["name"] == "Ada"

    deleted = client.delete("/api/backups/final_hero")
    assert deleted.status_code == 200
    assert client.get("/api/backups/final_hero").status_code == 404


def test_backup_defaults_to_autosave_and_overwrites(client):
    client.post("/api/backups", json={"data": {"name": "First"}})
    client.post("/api/backups", json={"data": {"name": "Second"}})

    listed = client.get("/api/backups").get_json()["backups"]

    assert len(listed) == 1
    assert listed[0]["name"] == "Autosave"
    assert listed[0]["data"]["name"] == "Second"


def test_backups_are_listed_newest_first(client):
    client.post("/api/backups", json={"name": "First", "data": {}})
    client.post("/api/backups", json={"name": "Second", "data": {}})

    listed = client.get("/api/backups").get_json()["backups"]

    assert [entry["name"] for entry in listed] == ["Second", "First"]


def test_backup_requires_data(client):
    response = client.post("/api/backups", json={"name": "Empty"})

    assert response.status_code == 400


def test_rename_unknown_backup_is_not_found(client):
    response = client.post("/api/backups/missing/rename", json={"name": "Other"})

    assert response.status_code == 404


def test_build_character_from_json_editor_fields(client):
    response = client.post(
        "/api/build-character",
        json={
            "name": "Kai",
            "clients": ["discord", "discord", "telegram"],
            "modelProvider": "openai",
            "voiceModel": "en_US-male-medium",
            "bio": "Grew up in the dunes. Reads the wind!",
            "lore": ["Crossed the salt flats", "Lost a brother there."],
            "styleChat": "Answers briefly",
            "adjectives": ["Calm", "sharp Eyed"],
            "people": ["Mara"],
            "knowledge": ["Storms come from the east"],
            "messageExamples": [
                {"user": "Where to?", "character": "North."},
                ["", ""],
                ["Why?", "Water."],
            ],
        },
    )

    assert response.status_code == 200
    character = response.get_json()["character"]
    assert character["name"] == "Kai"
    assert character["clients"] == ["discord", "telegram"]
    assert character["modelProvider"] == "openai"
    assert character["settings"]["voice"] == {"model": "en_US-male-medium"}
    assert character["bio"] == ["Grew up in the dunes.", "Reads the wind."]
    assert character["lore"] == ["Crossed the salt flats.", "Lost a brother there."]
    assert character["style"]["chat"] == ["Answers briefly."]
    assert character["adjectives"] == ["calm", "sharp", "eyed"]
    assert character["people"] == ["Mara"]
    assert character["knowledge"] == ["Storms come from the east."]
    assert character["messageExamples"] == [
        [
            {"user": "{{user1}}", "content": {"text": "Where to?"}},
            {"user": "Kai", "content": {"text": "North."}},
        ],
        [
            {"user": "{{user1}}", "content": {"text": "Why?"}},
            {"user": "Kai", "content": {"text": "Water."}},
        ],
    ]


def test_build_character_json_uses_current_knowledge_list(client):
    response = client.post(
        "/api/build-character",
        json={"name": "Kai", "currentKnowledge": ["From a file."]},
    )

    assert response.status_code == 200
    assert response.get_json()["character"]["knowledge"] == ["From a file."]


def test_build_character_json_rejects_malformed_list_field(client):
    response = client.post("/api/build-character", json={"clients": {"discord": True}})

    assert response.status_code == 400
    assert response.get_json()["fields"]["payload"] == ["clients must be a list"]


def test_app_start_creates_backup_table(app_instance):
    from sqlalchemy import inspect

    from character_forge.db_utils import ensure_database_schema
    from character_forge.extensions import db

    assert "character_backups" in inspect(db.engine).get_table_names()
    ensure_database_schema()
    assert "character_backups" in inspect(db.engine).get_table_names()
