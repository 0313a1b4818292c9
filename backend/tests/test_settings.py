from app.services.settings import DEFAULT_SETTINGS, deep_merge, load_settings


def test_deep_merge_nested_objects():
    base = {"general": {"site_name": "A", "currency": "USD"}, "flags": [1, 2]}
    merged = deep_merge(base, {"general": {"site_name": "B"}, "flags": [3]})

    assert merged == {"general": {"site_name": "B", "currency": "USD"}, "flags": [3]}
    assert base["general"]["site_name"] == "A"


def test_deep_merge_scalar_replaces_object_and_back():
    assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}
    assert deep_merge({"a": 1}, {"a": {"b": 2}}) == {"a": {"b": 2}}


def test_deep_merge_adds_new_keys():
    assert deep_merge({}, {"x": {"y": {"z": 1}}}) == {"x": {"y": {"z": 1}}}


def test_defaults_without_stored_row(admin_client):
    response = admin_client.get("/api/admin/settings/")
    assert response.status_code == 200
    assert response.json() == DEFAULT_SETTINGS


def test_patch_merges_partial_update(admin_client, session):
    response = admin_client.patch("/api/admin/settings/", json={
        "general": {"site_name": "UQ Store"},
        "security": {"maintenance_mode": True},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["general"]["site_name"] == "UQ Store"
    assert body["general"]["currency"] == "USD"
    assert body["security"]["maintenance_mode"] is True
    assert body["security"]["allow_registration"] is True

    admin_client.patch("/api/admin/settings/", json={"general": {"currency": "EUR"}})
    stored = load_settings(session)
    assert stored["general"] == {**DEFAULT_SETTINGS["general"], "site_name": "UQ Store", "currency": "EUR"}


def test_settings_require_admin(customer_client):
    assert customer_client.get("/api/admin/settings/").status_code == 401
    assert customer_client.patch("/api/admin/settings/", json={"general": {}}).status_code == 401
