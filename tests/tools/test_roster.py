"""Tests for the roster tools (add, import, delete students)."""

from school_library_mcp.tools.roster import (
    add_student_handler,
    delete_student_handler,
    import_students_handler,
)


class TestAddStudentTool:
    async def test_add_student(self, installed_service):
        result = await add_student_handler({"name": "Eve"})

        assert result["content"][0]["text"] == "Added student Eve (id 5)"
        assert result["data"]["student"] == {"id": 5, "name": "Eve"}
        assert installed_service.list_students()[0].name == "Eve"

    async def test_missing_name(self, installed_service):
        result = await add_student_handler({})

        assert result["isError"] is True
        assert result["data"]["error"] == "invalid_arguments"


class TestImportStudentsTool:
    async def test_import_with_sampling(self, installed_service, sampling_context_factory):
        ctx = sampling_context_factory(response_text='[{"name": "Eve"}, {"name": "Frank"}]')

        result = await import_students_handler({"text": "Eve\nFrank"}, ctx)

        assert result["data"]["created"] == 2
        assert [s["name"] for s in result["data"]["students"]] == ["Eve", "Frank"]
        assert [s.name for s in installed_service.list_students()[:2]] == ["Frank", "Eve"]

    async def test_import_with_sampling_disabled(
        self, installed_service, sampling_context_factory, monkeypatch
    ):
        monkeypatch.setenv("SCHOOL_LIBRARY_ENABLE_SAMPLING", "false")
        ctx = sampling_context_factory()

        result = await import_students_handler({"text": "Name\nEve"}, ctx)

        assert result["data"]["created"] == 1
        ctx.request_context.session.create_message.assert_not_called()

    async def test_import_parse_failure(self, installed_service, sampling_context_factory):
        ctx = sampling_context_factory(sampling=False)

        result = await import_students_handler({"text": "42\n43"}, ctx)

        assert result["data"]["error"] == "parse_failure"
        assert len(installed_service.list_students()) == 4


class TestDeleteStudentTool:
    async def test_delete_student(self, installed_service):
        result = await delete_student_handler({"student_id": 4})

        assert result["content"][0]["text"] == "Deleted student Diana"
        assert installed_service.get_student(4) is None

    async def test_delete_student_with_loans(self, installed_service):
        result = await delete_student_handler({"student_id": 1})

        assert result["isError"] is True
        assert result["data"]["error"] == "conflict"
        assert "active loans" in result["content"][0]["text"]
