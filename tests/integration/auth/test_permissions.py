import pytest

from webdav_gateway.core.service.auth.errors import InvalidAddress
from webdav_gateway.core.service.auth.models.user import Permissions, Rule, User, can_access


class TestPermissions:
    @pytest.mark.parametrize("code,expected", [
        ("CRUD", "CRUD"),
        ("dcur", "CRUD"),
        ("r", "R"),
        ("RD", "RD"),
        ("", ""),
        ("RW", "CRU"),
        ("xyzR", "R"),
    ])
    def test_parse_is_case_and_order_insensitive(self, code, expected):
        assert str(Permissions.parse(code)) == expected

    def test_default_is_read_only(self):
        perms = Permissions.default()
        assert perms.read
        assert not (perms.create or perms.update or perms.delete)
        assert User(username="u").permissions == perms

    @pytest.mark.parametrize("name", ["R", "r", "READ", "read", "Read"])
    def test_has_accepts_short_and_long_forms(self, name):
        assert Permissions.parse("R").has(name)

    @pytest.mark.parametrize("name", ["", "X", "write", None])
    def test_has_rejects_unknown_names(self, name):
        assert not Permissions.full().has(name)

    def test_names_in_crud_order(self):
        assert Permissions.parse("DRC").names() == ["create", "read", "delete"]


class TestRules:
    def test_prefix_rule(self):
        rule = Rule(path="/private", permissions=Permissions.parse("R"))
        assert rule.matches("/private/x")
        assert not rule.matches("/public/private")

    def test_regex_rule_uses_search(self):
        rule = Rule(path=r"\.secret$", permissions=Permissions(), regex=True)
        assert rule.matches("/docs/key.secret")
        assert not rule.matches("/docs/key.secret.bak")

    def test_invalid_regex_rejected(self):
        with pytest.raises(ValueError):
            Rule(path="([unclosed", regex=True)


class TestCanAccess:
    @pytest.fixture
    def alice(self):
        return User(
            username="alice",
            permissions=Permissions.parse("R"),
            rules=[Rule(path="/private", permissions=Permissions.parse("RW"))]
        )

    def test_matching_rule_overrides_default(self, alice):
        assert can_access(alice, "/private/x", "Update")
        assert can_access(alice, "/private/x", "U")

    def test_default_applies_without_match(self, alice):
        assert not can_access(alice, "/public/x", "Update")
        assert can_access(alice, "/public/x", "Read")

    def test_first_matching_rule_wins(self):
        user = User(
            username="carol",
            permissions=Permissions.full(),
            rules=[
                Rule(path="/shared/readonly", permissions=Permissions.parse("R")),
                Rule(path="/shared", permissions=Permissions.full()),
            ]
        )
        assert not user.can_access("/shared/readonly/doc", "D")
        assert user.can_access("/shared/other", "D")

    def test_rule_can_revoke_default(self):
        user = User(
            username="dave",
            permissions=Permissions.full(),
            rules=[Rule(path="/locked", permissions=Permissions())]
        )
        assert not user.can_access("/locked/a", "R")

    @pytest.mark.parametrize("code", ["", "R", "CD", "CRUD"])
    def test_no_rules_means_exactly_default(self, code):
        user = User(username="erin", permissions=Permissions.parse(code))
        for letter in "CRUD":
            assert user.can_access("/any/path", letter) == (letter in code)


class TestUser:
    def test_wallet_address_stored_lower_case(self):
        user = User(username="u", wallet_address="0xABCDEF0000000000000000000000000000000001")
        assert user.wallet_address == "0xabcdef0000000000000000000000000000000001"

    def test_set_wallet_address_rejects_empty(self):
        user = User(username="u")
        with pytest.raises(InvalidAddress):
            user.set_wallet_address("  ")

    def test_credentials(self):
        user = User(username="u")
        assert not user.has_password()
        assert not user.has_wallet_address()
        user.set_password("{bcrypt}hash")
        user.set_wallet_address("0xAbC")
        assert user.has_password()
        assert user.wallet_address == "0xabc"
