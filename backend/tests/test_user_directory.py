"""
Tests for UserDirectory find-or-create and counter adjustment.
"""
from unittest.mock import MagicMock, patch

from signalone.models.db_models import ProviderType, UserDB
from signalone.models.domain import ProviderIdentity
from signalone.services.identity import OAuthIdentityResolver
from signalone.services.users import UserDirectory


class TestFindOrCreate:

    def test_first_login_creates_default_user(self, db):
        directory = UserDirectory(db)
        user = directory.find_or_create(ProviderIdentity(ProviderType.GITHUB, "42", "octocat"))

        assert user.id
        assert user.user_name == "octocat"
        assert user.is_pro is False
        assert user.counter == 0
        assert user.agent_bearer_token == ""
        assert user.external_id == "github:42"

    def test_same_identity_returns_same_user(self, db):
        directory = UserDirectory(db)
        identity = ProviderIdentity(ProviderType.GOOGLE, "1098", "Ada")

        first = directory.find_or_create(identity)
        second = directory.find_or_create(identity)

        assert first.id == second.id
        assert db.query(UserDB).count() == 1

    def test_same_native_id_on_two_providers_is_two_users(self, db):
        directory = UserDirectory(db)
        github = directory.find_or_create(ProviderIdentity(ProviderType.GITHUB, "7", "a"))
        google = directory.find_or_create(ProviderIdentity(ProviderType.GOOGLE, "7", "b"))

        assert github.id != google.id

    def test_existing_user_keeps_stored_name(self, db):
        directory = UserDirectory(db)
        directory.find_or_create(ProviderIdentity(ProviderType.GITHUB, "42", "octocat"))
        again = directory.find_or_create(ProviderIdentity(ProviderType.GITHUB, "42", "renamed"))

        assert again.user_name == "octocat"

    def test_concurrent_first_login_reads_winning_row(self, db):
        directory = UserDirectory(db)
        identity = ProviderIdentity(ProviderType.GITHUB, "42", "octocat")
        winner = UserDB(provider=ProviderType.GITHUB, provider_user_id="42", user_name="first")
        db.add(winner)
        db.commit()
        lookups = [None]

        def racing_lookup(ident):
            # The first lookup misses as if the other login had not committed yet
            if lookups:
                return lookups.pop()
            return UserDirectory.find_by_identity(directory, ident)

        with patch.object(directory, "find_by_identity", side_effect=racing_lookup):
            user = directory.find_or_create(identity)

        assert user.id == winner.id
        assert user.user_name == "first"
        assert db.query(UserDB).count() == 1


class TestAdjustCounter:

    def test_adjust_counter_adds_delta(self, db, make_user):
        user = make_user(score_counter=3)
        directory = UserDirectory(db)

        assert directory.adjust_counter(user.id, -2) is True
        assert directory.get(user.id).counter == 1

    def test_adjust_counter_unknown_user(self, db):
        assert UserDirectory(db).adjust_counter("missing", 1) is False


class TestOAuthIdentityResolver:

    def test_github_login_creates_user_and_mints_tokens(self, db, token_service):
        github = MagicMock()
        github.resolve.return_value = ProviderIdentity(ProviderType.GITHUB, "42", "octocat")
        resolver = OAuthIdentityResolver(github, MagicMock(), UserDirectory(db), token_service)

        pair = resolver.login_with_github("code")

        user = db.query(UserDB).one()
        assert token_service.verify(pair.access_token) == user.id
        assert token_service.decode(pair.refresh_token).user_name == "octocat"

    def test_google_login_reuses_existing_user(self, db, token_service):
        google = MagicMock()
        google.resolve.return_value = ProviderIdentity(ProviderType.GOOGLE, "1098", "Ada")
        resolver = OAuthIdentityResolver(MagicMock(), google, UserDirectory(db), token_service)

        first = resolver.login_with_google("id-token")
        second = resolver.login_with_google("id-token")

        assert token_service.verify(first.access_token) == token_service.verify(second.access_token)
        assert db.query(UserDB).count() == 1
