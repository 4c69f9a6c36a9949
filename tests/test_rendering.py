"""Tests for perch.rendering: wiring service endpoints to render handlers."""

import pytest

from perch.endpoints import EndpointDef
from perch.errors import ErrorCode, HandlerError
from perch.named import NamedInstance
from perch.rendering import RendersResponses
from perch.service import Service
from perch.testing import RecordingServer

TABLE = {
    "GET user": {"HTTPMethod": "get", "URLSubpath": "/users/:id"},
    "DELETE user": {"HTTPMethod": "DELETE", "URLSubpath": "/users/:id"},
    "POST users": {"HTTPMethod": "post", "URLSubpath": "/users"},
}


class Users(Service):
    def __init__(self, name, config, **kwargs):
        self.processed = []
        super().__init__(name, config, **kwargs)

    def _map_endpoints_to_methods(self):
        return {
            "GET user": self.get_user,
            "DELETE user": self.delete_user,
            "POST users": self.create_user,
        }

    def get_user(self, request, ready):
        self.processed.append("GET user")
        ready({"id": 7})
        return "processed"

    def delete_user(self, request, ready):
        self.processed.append("DELETE user")
        ready(None, {"message": "gone", "code": "ERR_GONE"})

    def create_user(self, request, ready):
        self.processed.append("POST users")
        ready({"id": 8}, None, 201)


class Recorder(NamedInstance, RendersResponses):
    """Renderer that records what it was asked to render."""

    def __init__(self, name, server, render_endpoints=None):
        super().__init__(name)
        self.server = server
        self.rendered = []
        self.render_endpoints = render_endpoints

    def get_http_server(self):
        return self.server

    def get_render_method_for_endpoint(self, endpoint_name):
        if self.render_endpoints is not None and endpoint_name not in self.render_endpoints:
            return None
        return self.render

    def render(self, request, response, next, data, err, status=None):
        self.rendered.append((data, err, status))
        response.json(data)


def _users(table=TABLE) -> Users:
    return Users("users", {"endpointTable": table})


class TestRegistration:
    def test_registers_one_route_per_endpoint(self) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), "/api/")
        assert [(r.verb, r.path) for r in server.routes] == [
            ("get", "/api/users/:id"),
            ("delete", "/api/users/:id"),
            ("post", "/api/users"),
        ]

    def test_default_root_path(self) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), None)
        assert server.paths("post") == ["/users"]

    def test_endpoint_subset(self) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), "/api", ["POST users"])
        assert server.paths() == ["/api/users"]

    def test_endpoint_subset_as_tuple(self) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), "/api", ("GET user", "POST users"))
        assert [(r.verb, r.path) for r in server.routes] == [("get", "/api/users/:id"), ("post", "/api/users")]

    @pytest.mark.parametrize("subset", ["POST users", b"POST users"])
    def test_string_subset_renders_every_endpoint(
        self, subset: object, caplog: pytest.LogCaptureFixture
    ) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), "/api", subset)  # type: ignore[arg-type]
        assert len(server.routes) == 3
        assert "is not a list of names" in caplog.text

    def test_empty_selection_is_noop_success(self, caplog: pytest.LogCaptureFixture) -> None:
        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(_users(), "/api", [])
        assert server.routes == []
        assert "nothing to do" in caplog.text

    def test_service_without_endpoint_list_fails(self) -> None:
        server = RecordingServer()
        assert not Recorder("r", server).render_responses_for(Users("users", {}), "/api")
        assert server.routes == []

    def test_non_service_rejected(self, caplog: pytest.LogCaptureFixture) -> None:
        server = RecordingServer()
        assert not Recorder("r", server).render_responses_for(object(), "/api")  # type: ignore[arg-type]
        assert server.routes == []
        assert "does not adhere to the interface" in caplog.text

    def test_partial_failure_still_succeeds(self, caplog: pytest.LogCaptureFixture) -> None:
        class Partial(Users):
            def _map_endpoints_to_methods(self):
                return {"GET user": self.get_user, "POST users": self.create_user}

        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(Partial("users", {"endpointTable": TABLE}), "/")
        assert len(server.routes) == 2
        assert "endpoint DELETE user: no processing method found" in caplog.text
        assert caplog.text.count("response rendering setup failed") == 1

    def test_unknown_verbs_fail_everything(self, caplog: pytest.LogCaptureFixture) -> None:
        table = {
            "PURGE a": {"HTTPMethod": "purge", "URLSubpath": "/a"},
            "BREW b": {"HTTPMethod": "brew", "URLSubpath": "/b"},
        }

        class Odd(Service):
            def _map_endpoints_to_methods(self):
                return {"PURGE a": lambda req, ready: ready(1), "BREW b": lambda req, ready: ready(2)}

        server = RecordingServer()
        assert not Recorder("r", server).render_responses_for(Odd("odd", {"endpointTable": table}), "/")
        assert server.routes == []
        assert "HTTP method [purge] not known by server" in caplog.text

    def test_verb_missing_on_server(self) -> None:
        server = RecordingServer(verbs=("get", "post"))
        assert Recorder("r", server).render_responses_for(_users(), "/")
        assert [r.verb for r in server.routes] == ["get", "post"]

    def test_missing_render_method(self, caplog: pytest.LogCaptureFixture) -> None:
        server = RecordingServer()
        recorder = Recorder("r", server, render_endpoints={"GET user"})
        assert recorder.render_responses_for(_users(), "/")
        assert server.paths() == ["/users/:id"]
        assert "unable to get response rendering method" in caplog.text

    def test_unknown_endpoint_in_selection(self) -> None:
        server = RecordingServer()
        assert not Recorder("r", server).render_responses_for(_users(), "/", ["GET nothing"])
        assert server.routes == []

    def test_missing_definition(self, caplog: pytest.LogCaptureFixture) -> None:
        class Undefined(Users):
            def get_endpoint_def_for(self, endpoint_name):
                if endpoint_name == "POST users":
                    return None
                return super().get_endpoint_def_for(endpoint_name)

        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(Undefined("users", {"endpointTable": TABLE}), "/")
        assert server.paths() == ["/users/:id", "/users/:id"]
        assert "endpoint POST users: no endpoint definition" in caplog.text

    def test_no_server(self) -> None:
        assert not Recorder("r", None).render_responses_for(_users(), "/")

    def test_invalid_service_still_registers(self) -> None:
        class Partial(Users):
            def _map_endpoints_to_methods(self):
                return {"GET user": self.get_user}

        server = RecordingServer()
        assert Recorder("r", server).render_responses_for(Partial("users", {"endpointTable": TABLE}), "/")
        assert server.paths() == ["/users/:id"]


class TestHandler:
    def test_process_then_render(self) -> None:
        server = RecordingServer()
        users = _users()
        recorder = Recorder("r", server)
        recorder.render_responses_for(users, "/api")

        exchange = server.dispatch_sync("get", "/api/users/:id")
        assert users.processed == ["GET user"]
        assert recorder.rendered == [({"id": 7}, None, None)]
        assert exchange.response.payload == {"id": 7}
        assert not exchange.next.called

    def test_status_passed_to_render(self) -> None:
        server = RecordingServer()
        recorder = Recorder("r", server)
        recorder.render_responses_for(_users(), "/api")

        server.dispatch_sync("post", "/api/users")
        assert recorder.rendered == [({"id": 8}, None, 201)]

    def test_error_passed_to_render(self) -> None:
        server = RecordingServer()
        recorder = Recorder("r", server)
        recorder.render_responses_for(_users(), "/api")

        server.dispatch_sync("delete", "/api/users/:id")
        assert recorder.rendered == [(None, {"message": "gone", "code": "ERR_GONE"}, None)]

    def test_returns_processing_result(self) -> None:
        server = RecordingServer()
        Recorder("r", server).render_responses_for(_users(), "/")
        assert server.dispatch_sync("get", "/users/:id").result == "processed"

    def test_invalid_service_answers_with_error(self) -> None:
        class Partial(Users):
            def _map_endpoints_to_methods(self):
                return {"GET user": self.get_user}

        server = RecordingServer()
        users = Partial("users", {"endpointTable": TABLE})
        recorder = Recorder("r", server)
        recorder.render_responses_for(users, "/")

        exchange = server.dispatch_sync("get", "/users/:id")
        assert users.processed == []
        assert recorder.rendered == []
        assert isinstance(exchange.next.error, HandlerError)
        assert exchange.next.error.code == ErrorCode.SERVICE_INVALID
        assert "users" in exchange.next.error.message
        assert "GET user" in exchange.next.error.message
        assert exchange.result is False

    def test_invalid_renderer_answers_with_error(self) -> None:
        server = RecordingServer()
        users = _users()
        recorder = Recorder("r", server)
        recorder.render_responses_for(users, "/")
        recorder._invalidate("gone bad")

        exchange = server.dispatch_sync("get", "/users/:id")
        assert users.processed == ["GET user"]
        assert recorder.rendered == []
        assert exchange.next.error.code == ErrorCode.RENDERER_INVALID
        assert not exchange.response.written

    def test_service_without_is_valid_counts_as_valid(self) -> None:
        class Duck:
            def get_iname(self):
                return "duck"

            def get_endpoint_names(self):
                return ["quack"]

            def get_endpoint_def_for(self, name):
                return EndpointDef(name=name, url_subpath="/quack")

            def get_method_for_endpoint(self, name):
                return lambda request, ready: ready("quack")

        server = RecordingServer()
        recorder = Recorder("r", server)
        assert recorder.render_responses_for(Duck(), "/")
        server.dispatch_sync("get", "/quack")
        assert recorder.rendered == [("quack", None, None)]

    @pytest.mark.anyio
    async def test_async_processing_method(self) -> None:
        class AsyncUsers(Service):
            def _map_endpoints_to_methods(self):
                return {"GET user": self.get_user}

            async def get_user(self, request, ready):
                ready({"id": 9})
                return "done"

        server = RecordingServer()
        recorder = Recorder("r", server)
        recorder.render_responses_for(
            AsyncUsers("users", {"endpointTable": {"GET user": {"URLSubpath": "/u"}}}), "/"
        )

        exchange = await server.dispatch("get", "/u")
        assert exchange.result == "done"
        assert exchange.response.payload == {"id": 9}


class TestAbstractHooks:
    class Bare(NamedInstance, RendersResponses):
        pass

    def test_get_http_server_not_implemented(self, caplog: pytest.LogCaptureFixture) -> None:
        bare = self.Bare("bare")
        assert bare.get_http_server() is None
        assert "bare::RendersResponses::get_http_server: method not implemented" in caplog.text

    def test_get_render_method_not_implemented(self, caplog: pytest.LogCaptureFixture) -> None:
        assert self.Bare("bare").get_render_method_for_endpoint("GET user") is None
        assert "renders responses for endpoint GET user" in caplog.text

    def test_render_responses_for_fails_without_overrides(self) -> None:
        assert not self.Bare("bare").render_responses_for(_users(), "/")

    def test_unnamed_mixin_user(self, caplog: pytest.LogCaptureFixture) -> None:
        class Anonymous(RendersResponses):
            pass

        assert Anonymous().get_http_server() is None
        assert "[Unknown class that RendersResponses]" in caplog.text
