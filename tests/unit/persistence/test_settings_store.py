"""GPS flag, permission matrices, users and seeding."""

from __future__ import annotations

from hse_field_reports.constants import (
    FEATURE_PERMISSIONS_KEY,
    GPS_ENABLED_KEY,
    ROLE_PERMISSIONS_KEY,
    USERS_KEY,
)
from hse_field_reports.domain.models import Department
from hse_field_reports.persistence.repositories import (
    DEFAULT_ROLE_PERMISSIONS,
    DEFAULT_USERS,
    ReportScreen,
    SettingsStore,
    has_managerial_role,
)

from . import make_documents, make_user, stored_document


def test_gps_flag_defaults_to_disabled() -> None:
    backend, documents = make_documents()
    settings = SettingsStore(documents)

    assert settings.gps_enabled() is False
    settings.set_gps_enabled(True)
    assert settings.gps_enabled() is True
    assert stored_document(backend, GPS_ENABLED_KEY) is True

    backend.set(GPS_ENABLED_KEY, '"yes"')
    assert settings.gps_enabled() is False


def test_role_permissions_are_seeded_when_absent_or_unreadable() -> None:
    backend, documents = make_documents()
    settings = SettingsStore(documents)

    assert settings.role_permissions() == DEFAULT_ROLE_PERMISSIONS
    assert stored_document(backend, ROLE_PERMISSIONS_KEY) == DEFAULT_ROLE_PERMISSIONS

    backend.set(ROLE_PERMISSIONS_KEY, "nope{")
    assert settings.role_permissions() == DEFAULT_ROLE_PERMISSIONS
    assert stored_document(backend, ROLE_PERMISSIONS_KEY) == DEFAULT_ROLE_PERMISSIONS


def test_can_open_uses_stored_matrix() -> None:
    _, documents = make_documents()
    settings = SettingsStore(documents)

    assert settings.can_open("Admin User", ReportScreen.SAFETY_INSPECTION) is True
    assert settings.can_open("Standard User", ReportScreen.SAFETY_INSPECTION) is False
    assert settings.can_open("Personal User", ReportScreen.NEAR_MISS_REPORT) is True
    assert settings.can_open("Visitor", ReportScreen.INCIDENT_REPORT) is False

    settings.save_role_permissions({"Visitor": {ReportScreen.INCIDENT_REPORT.value: True}})
    assert settings.can_open("Visitor", ReportScreen.INCIDENT_REPORT) is True


def test_feature_permissions_merge_stored_flags_over_defaults() -> None:
    _, documents = make_documents(
        {
            FEATURE_PERMISSIONS_KEY: {
                "Super User": {"canDeleteReport": True},
                "Ghost Role": {"canDeleteReport": True},
            }
        }
    )
    settings = SettingsStore(documents)

    merged = settings.feature_permissions()

    assert merged["Super User"] == {"canViewPhotoGallery": False, "canDeleteReport": True}
    assert merged["Admin User"]["canViewPhotoGallery"] is True
    assert "Ghost Role" not in merged


def test_seed_defaults_only_when_no_user_exists() -> None:
    backend, documents = make_documents()
    settings = SettingsStore(documents)

    assert settings.seed_defaults() is True
    assert [user.id for user in settings.users()] == [user.id for user in DEFAULT_USERS]
    assert len(settings.departments()) == 1
    stored_users = stored_document(backend, USERS_KEY)
    assert isinstance(stored_users, list)
    assert all("password" not in user for user in stored_users)

    assert settings.seed_defaults() is False


def test_display_name_falls_back_to_id() -> None:
    _, documents = make_documents()
    settings = SettingsStore(documents)
    settings.save_users([make_user("user-1", full_name="Ola Nordmann"), make_user("user-2")])

    assert settings.display_name("user-1") == "Ola Nordmann"
    assert settings.display_name("user-2") == "user-2"
    assert settings.display_name("user-3") is None


def test_users_accept_alternate_field_names_and_skip_bad_records() -> None:
    _, documents = make_documents(
        {
            USERS_KEY: [
                {"id": "u1", "display_name": "Kari", "role": "Super User", "department_id": "d1"},
                {"fullName": "No Id"},
                "junk",
            ]
        }
    )
    settings = SettingsStore(documents)

    [user] = settings.users()
    assert user.display_name == "Kari"
    assert user.department_id == "d1"
    assert has_managerial_role(user) is True
    assert has_managerial_role(make_user("u2")) is False
    assert has_managerial_role(None) is False


def test_departments_and_reminders_round_trip() -> None:
    _, documents = make_documents()
    settings = SettingsStore(documents)

    settings.save_departments([Department(id="d1", name="Yard", description="Outdoor")])
    settings.save_reminders([{"id": "r1", "text": "Weekly walk", "done": False}])

    assert settings.departments() == [Department(id="d1", name="Yard", description="Outdoor")]
    assert settings.reminders() == [{"id": "r1", "text": "Weekly walk", "done": False}]


def test_saved_feature_permissions_survive_reload() -> None:
    backend, documents = make_documents()
    settings = SettingsStore(documents)

    settings.save_feature_permissions({"Admin User": {"canDeleteReport": False}})

    assert stored_document(backend, FEATURE_PERMISSIONS_KEY) == {
        "Admin User": {"canDeleteReport": False}
    }
    assert settings.feature_permissions()["Admin User"]["canDeleteReport"] is False
