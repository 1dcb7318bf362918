"""Tests for the Jira tool handlers."""

import json

import pytest


def _issue_with_comments(count):
    return {
        "key": "PROJ-1",
        "fields": {
            "summary": "Broken login",
            "comment": {
                "total": count,
                "comments": [{"id": str(i), "body": f"c{i}"} for i in range(count)],
            },
        },
    }


class TestGetIssue:
    """Tests for jira_get_issue."""

    @pytest.mark.parametrize(
        "limit, expected",
        [
            pytest.param(2, 2, id="truncated"),
            pytest.param(0, 5, id="zero_keeps_all"),
            pytest.param(-1, 5, id="negative_keeps_all"),
            pytest.param(10, 5, id="limit_above_count"),
        ],
    )
    def test_comment_truncation(
        self, registry, ctx, jira_client, response_factory, limit, expected
    ):
        jira_client.request.return_value = response_factory(
            200, _issue_with_comments(5)
        )
        result = registry.dispatch(
            "jira_get_issue", {"issue_key": "PROJ-1", "comment_limit": limit}, ctx
        )
        assert not result.is_error
        issue = json.loads(result.text)
        assert len(issue["fields"]["comment"]["comments"]) == expected

    def test_request_shape(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(200, {"key": "PROJ-1"})
        registry.dispatch(
            "jira_get_issue",
            {"issue_key": "PROJ-1", "fields": "summary,status", "update_history": False},
            ctx,
        )
        jira_client.request.assert_called_once_with(
            method="GET",
            path="rest/api/2/issue/PROJ-1",
            params={"fields": "summary,status", "updateHistory": "false"},
            data=None,
            advanced_mode=True,
        )

    def test_remote_error_is_prefixed(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(
            404, {"errorMessages": ["Issue does not exist or you do not have access"]}
        )
        result = registry.dispatch("jira_get_issue", {"issue_key": "NOPE-1"}, ctx)
        assert result.is_error
        assert result.text.startswith("Failed to get issue: HTTP 404")
        assert "Issue does not exist" in result.text

    def test_client_released_after_call(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(500, {})
        registry.dispatch("jira_get_issue", {"issue_key": "PROJ-1"}, ctx)
        jira_client.factory.assert_called_once_with(ctx)
        jira_client.__enter__.assert_called_once()
        jira_client.__exit__.assert_called_once()


class TestSearch:
    """Tests for jira_search and jira_get_project_issues."""

    def test_projects_filter_is_prepended(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(200, {"issues": []})
        registry.dispatch(
            "jira_search",
            {"jql": "status = Open", "projects_filter": "A, B", "limit": 5},
            ctx,
        )
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "rest/api/2/search"
        assert kwargs["data"] == {
            "jql": "project in ('A','B') AND (status = Open)",
            "startAt": 0,
            "maxResults": 5,
        }

    def test_fields_and_expand_become_lists(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(200, {"issues": []})
        registry.dispatch(
            "jira_search",
            {"jql": "project = X", "fields": "summary, status", "expand": "changelog"},
            ctx,
        )
        data = jira_client.request.call_args.kwargs["data"]
        assert data["jql"] == "project = X"
        assert data["fields"] == ["summary", "status"]
        assert data["expand"] == ["changelog"]

    def test_project_issues_jql(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(200, {"issues": []})
        registry.dispatch("jira_get_project_issues", {"project_key": "PROJ"}, ctx)
        data = jira_client.request.call_args.kwargs["data"]
        assert data["jql"] == "project = 'PROJ'"


class TestWorklog:
    """Tests for jira_add_worklog."""

    def test_new_estimate_and_started(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(201, {"id": "100"})
        result = registry.dispatch(
            "jira_add_worklog",
            {
                "issue_key": "PROJ-1",
                "time_spent": "2h 30m",
                "started": "2024-03-01T09:30:00Z",
                "original_estimate": "3h",
                "remaining_estimate": "1h",
            },
            ctx,
        )
        assert not result.is_error
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["path"] == "rest/api/2/issue/PROJ-1/worklog"
        assert kwargs["params"] == {"adjustEstimate": "new", "newEstimate": "3h"}
        assert kwargs["data"] == {
            "timeSpent": "2h 30m",
            "started": "2024-03-01T09:30:00.000+0000",
        }

    def test_remaining_estimate_reduces(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(201, {"id": "100"})
        registry.dispatch(
            "jira_add_worklog",
            {"issue_key": "PROJ-1", "time_spent": "1h", "remaining_estimate": "1h"},
            ctx,
        )
        assert jira_client.request.call_args.kwargs["params"] == {
            "adjustEstimate": "manual",
            "reduceBy": "1h",
        }

    def test_invalid_started_is_rejected_before_request(
        self, registry, ctx, jira_client
    ):
        result = registry.dispatch(
            "jira_add_worklog",
            {"issue_key": "PROJ-1", "time_spent": "1h", "started": "yesterday-ish"},
            ctx,
        )
        assert result.is_error
        assert result.text == "could not parse time: yesterday-ish"
        jira_client.request.assert_not_called()


class TestCreateAndUpdate:
    """Tests for jira_create_issue and jira_update_issue."""

    def test_create_issue_payload(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(
            201, {"id": "10001", "key": "PROJ-7"}
        )
        result = registry.dispatch(
            "jira_create_issue",
            {
                "project_key": "PROJ",
                "summary": "New thing",
                "issue_type": "Task",
                "components": "UI, API",
                "additional_fields": '{"priority": {"name": "High"}}',
            },
            ctx,
        )
        assert json.loads(result.text)["key"] == "PROJ-7"
        fields = jira_client.request.call_args.kwargs["data"]["fields"]
        assert fields == {
            "project": {"key": "PROJ"},
            "summary": "New thing",
            "issuetype": {"name": "Task"},
            "components": [{"name": "UI"}, {"name": "API"}],
            "priority": {"name": "High"},
        }

    def test_create_issue_bad_additional_fields(self, registry, ctx, jira_client):
        result = registry.dispatch(
            "jira_create_issue",
            {
                "project_key": "PROJ",
                "summary": "New thing",
                "issue_type": "Task",
                "additional_fields": "{not json",
            },
            ctx,
        )
        assert result.is_error
        assert result.text.startswith("Failed to parse additional_fields:")
        jira_client.request.assert_not_called()

    def test_update_issue_merges_additional_fields(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(204)
        result = registry.dispatch(
            "jira_update_issue",
            {
                "issue_key": "PROJ-1",
                "fields": '{"summary": "A", "labels": ["x"]}',
                "additional_fields": '{"summary": "B"}',
            },
            ctx,
        )
        assert result.text == "Issue updated successfully"
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["method"] == "PUT"
        assert kwargs["path"] == "rest/api/2/issue/PROJ-1"
        assert kwargs["data"] == {"fields": {"summary": "B", "labels": ["x"]}}

    @pytest.mark.parametrize(
        "arguments, prefix",
        [
            pytest.param({"fields": "[1, 2]"}, "Invalid fields JSON", id="not_object"),
            pytest.param({"fields": "{"}, "Invalid fields JSON", id="bad_fields"),
            pytest.param(
                {"fields": "{}", "additional_fields": "nope"},
                "Invalid additional_fields JSON",
                id="bad_additional",
            ),
        ],
    )
    def test_update_issue_invalid_json(
        self, registry, ctx, jira_client, arguments, prefix
    ):
        result = registry.dispatch(
            "jira_update_issue", {"issue_key": "PROJ-1", **arguments}, ctx
        )
        assert result.is_error
        assert result.text.startswith(prefix)
        jira_client.request.assert_not_called()

    def test_update_issue_attachments_unsupported(self, registry, ctx, jira_client):
        result = registry.dispatch(
            "jira_update_issue",
            {"issue_key": "PROJ-1", "fields": "{}", "attachments": "/tmp/a.txt"},
            ctx,
        )
        assert result.is_error
        assert result.text.startswith("Unsupported:")
        jira_client.factory.assert_not_called()


class TestConfirmations:
    """Tests for write tools that answer with a fixed sentence."""

    @pytest.mark.parametrize(
        "tool, arguments, method, path, text",
        [
            pytest.param(
                "jira_delete_issue",
                {"issue_key": "PROJ-1"},
                "DELETE",
                "rest/api/2/issue/PROJ-1",
                "Issue deleted successfully",
                id="delete_issue",
            ),
            pytest.param(
                "jira_link_to_epic",
                {"issue_key": "PROJ-2", "epic_key": "PROJ-1"},
                "POST",
                "rest/agile/1.0/epic/PROJ-1/issue",
                "Issue linked to epic successfully",
                id="link_to_epic",
            ),
            pytest.param(
                "jira_create_issue_link",
                {
                    "link_type": "Blocks",
                    "inward_issue_key": "PROJ-1",
                    "outward_issue_key": "PROJ-2",
                },
                "POST",
                "rest/api/2/issueLink",
                "Issue link created successfully",
                id="create_issue_link",
            ),
            pytest.param(
                "jira_remove_issue_link",
                {"link_id": "10100"},
                "DELETE",
                "rest/api/2/issueLink/10100",
                "Issue link removed successfully",
                id="remove_issue_link",
            ),
            pytest.param(
                "jira_transition_issue",
                {"issue_key": "PROJ-1", "transition_id": "31"},
                "POST",
                "rest/api/2/issue/PROJ-1/transitions",
                "Issue transitioned successfully",
                id="transition_issue",
            ),
        ],
    )
    def test_confirmation_text(
        self,
        registry,
        ctx,
        jira_client,
        response_factory,
        tool,
        arguments,
        method,
        path,
        text,
    ):
        jira_client.request.return_value = response_factory(204)
        result = registry.dispatch(tool, arguments, ctx)
        assert result.text == text
        assert not result.is_error
        kwargs = jira_client.request.call_args.kwargs
        assert (kwargs["method"], kwargs["path"]) == (method, path)

    def test_transition_with_fields_and_comment(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(204)
        registry.dispatch(
            "jira_transition_issue",
            {
                "issue_key": "PROJ-1",
                "transition_id": 31,
                "fields": '{"resolution": {"name": "Fixed"}}',
                "comment": "Done",
            },
            ctx,
        )
        assert jira_client.request.call_args.kwargs["data"] == {
            "transition": {"id": "31"},
            "fields": {"resolution": {"name": "Fixed"}},
            "update": {"comment": [{"add": {"body": "Done"}}]},
        }

    def test_issue_link_comment_visibility(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(201)
        registry.dispatch(
            "jira_create_issue_link",
            {
                "link_type": "Blocks",
                "inward_issue_key": "PROJ-1",
                "outward_issue_key": "PROJ-2",
                "comment": "Linked",
                "comment_visibility": '{"type": "group", "value": "dev"}',
            },
            ctx,
        )
        comment = jira_client.request.call_args.kwargs["data"]["comment"]
        assert comment == {
            "body": "Linked",
            "visibility": {"type": "group", "value": "dev"},
        }


class TestAgile:
    """Tests for the board and sprint tools."""

    def test_board_issues_path(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(200, {"issues": []})
        registry.dispatch(
            "jira_get_board_issues", {"board_id": "1001", "jql": "status = Open"}, ctx
        )
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["path"] == "rest/agile/1.0/board/1001/issue"
        assert kwargs["params"] == {
            "jql": "status = Open",
            "expand": "version",
            "startAt": 0,
            "maxResults": 10,
        }

    def test_board_id_must_be_numeric(self, registry, ctx, jira_client):
        result = registry.dispatch(
            "jira_get_board_issues", {"board_id": "abc", "jql": "x"}, ctx
        )
        assert result.text == (
            "Invalid value for parameter 'board_id': expected number"
        )
        jira_client.factory.assert_not_called()

    def test_create_sprint_payload(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(201, {"id": 37})
        registry.dispatch(
            "jira_create_sprint",
            {"board_id": 5, "sprint_name": "Sprint 1", "goal": "Ship it"},
            ctx,
        )
        assert jira_client.request.call_args.kwargs["data"] == {
            "name": "Sprint 1",
            "originBoardId": 5,
            "goal": "Ship it",
        }

    def test_update_sprint_sends_only_given_values(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(200, {"id": 37})
        registry.dispatch(
            "jira_update_sprint", {"sprint_id": 37, "state": "closed"}, ctx
        )
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "rest/agile/1.0/sprint/37"
        assert kwargs["data"] == {"state": "closed"}


class TestMisc:
    """Tests for the remaining read tools."""

    def test_ping(self, registry, ctx, jira_client, response_factory):
        jira_client.request.return_value = response_factory(200, {"name": "me"})
        assert registry.dispatch("jira_ping", {}, ctx).text == "Jira OK"
        assert jira_client.request.call_args.kwargs["path"] == "rest/api/2/myself"

    def test_user_profile_uses_account_id(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(200, {"name": "jdoe"})
        registry.dispatch("jira_get_user_profile", {"user_identifier": "jdoe"}, ctx)
        kwargs = jira_client.request.call_args.kwargs
        assert kwargs["path"] == "rest/api/2/user"
        assert kwargs["params"] == {"accountId": "jdoe"}

    def test_search_fields_returns_values(
        self, registry, ctx, jira_client, response_factory
    ):
        jira_client.request.return_value = response_factory(
            200, {"values": [{"id": "summary", "name": "Summary"}], "total": 1}
        )
        result = registry.dispatch("jira_search_fields", {"keyword": "sum"}, ctx)
        assert json.loads(result.text) == [{"id": "summary", "name": "Summary"}]

    @pytest.mark.parametrize(
        "tool, arguments",
        [
            pytest.param(
                "jira_download_attachments",
                {"issue_key": "PROJ-1", "target_dir": "/tmp"},
                id="download_attachments",
            ),
            pytest.param(
                "jira_batch_create_issues", {"issues": "[]"}, id="batch_create"
            ),
            pytest.param(
                "jira_batch_get_changelogs",
                {"issue_ids_or_keys": "PROJ-1"},
                id="batch_changelogs",
            ),
        ],
    )
    def test_unsupported_tools(self, registry, ctx, jira_client, tool, arguments):
        result = registry.dispatch(tool, arguments, ctx)
        assert result.is_error
        assert result.text.startswith("Unsupported:")
        jira_client.factory.assert_not_called()
