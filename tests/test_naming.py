import pytest

from ng2react.transformer.naming import (
    component_name,
    context_names,
    directive_hoc_name,
    pipe_function_name,
    pipe_hook_name,
    route_base_name,
    routes_names,
    service_hook_name,
)
from ng2react.utils.string_utils import callback_prop_name, setter_name, split_words, to_camel_case


@pytest.mark.parametrize("text, words", [
    ("userCard", ["user", "Card"]),
    ("HTTPClient", ["HTTP", "Client"]),
    ("date-format", ["date", "format"]),
])
def test_split_words(text, words):
    assert split_words(text) == words


def test_case_helpers():
    assert to_camel_case("date-format") == "dateFormat"
    assert setter_name("user") == "setUser"
    assert callback_prop_name("userSelected") == "onUserSelected"


class TestNaming:
    def test_declaration_names(self):
        assert component_name("UserCardComponent") == "UserCard"
        assert service_hook_name("UserService") == "useUserService"
        assert pipe_function_name("truncate") == "truncate"
        assert pipe_hook_name("truncate") == "useTruncate"
        assert directive_hoc_name("TooltipDirective") == "withTooltip"

    def test_module_names(self):
        assert context_names("AppModule") == ("AppContext", "AppProvider", "useAppContext")
        assert context_names("AdminRoutingModule")[0] == "AdminContext"

    def test_route_names(self):
        assert route_base_name("src/app/app.routes.ts") == "App"
        assert route_base_name("src/app/admin-routing.module.ts") == "Admin"
        assert routes_names("Admin") == ("AdminRoutes", "adminRoutes")
