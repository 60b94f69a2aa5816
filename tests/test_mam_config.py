import copy

import pytest

from mam_toolkit import mam_config
from mam_toolkit.info_plist import PlistFile
from mam_toolkit.types import MissingArgumentError


def _file(name: str, data: dict) -> PlistFile:
    f = PlistFile(name)
    f.data = data
    return f


def _info_plist() -> PlistFile:
    return _file(
        "App/App-Info.plist",
        {
            "CFBundleIdentifier": "com.example.app",
            "UIMainStoryboardFile": "Main",
            "NSMainNibFile~ipad": "MainWindowPad",
            "CFBundleURLTypes": [
                {"CFBundleURLName": "com.example.app", "CFBundleURLSchemes": ["myapp", "other-intunemam"]},
                {"CFBundleURLName": "no-schemes"},
            ],
            "LSApplicationQueriesSchemes": ["mailto", "fb", "tel-intunemam"],
        },
    )


def _entitlements() -> PlistFile:
    return _file(
        "App/App.entitlements",
        {"com.apple.security.application-groups": ["group.com.example.app"]},
    )


def _run_all(plist: PlistFile, ent: PlistFile) -> None:
    mam_config.configure_entitlements_and_plists(
        {ent.filepath: [plist.filepath]},
        [plist, ent],
    )


def test_configure_keychain_access_adds_app_and_microsoft_groups() -> None:
    plist, ent = _info_plist(), _entitlements()
    mam_config.configure_keychain_access(plist, ent)
    assert ent.keychain_access_groups == [
        "$(AppIdentifierPrefix)com.example.app",
        "$(AppIdentifierPrefix)com.microsoft.intune.mam",
        "$(AppIdentifierPrefix)com.microsoft.adalcache",
        "$(AppIdentifierPrefix)com.microsoft.workplacejoin",
    ]


def test_configure_keychain_access_requires_bundle_id() -> None:
    with pytest.raises(MissingArgumentError):
        mam_config.configure_keychain_access(_file("x.plist", {}), _entitlements())


def test_move_storyboards_nibs_moves_present_keys_only() -> None:
    plist = _info_plist()
    mam_config.move_storyboards_nibs(plist)
    assert "UIMainStoryboardFile" not in plist.data
    assert "NSMainNibFile~ipad" not in plist.data
    assert plist.intune_settings == {
        "UIMainStoryboardFile": "Main",
        "NSMainNibFile~ipad": "MainWindowPad",
    }


def test_move_storyboards_nibs_without_storyboard_creates_nothing() -> None:
    plist = _file("x.plist", {"CFBundleIdentifier": "a"})
    mam_config.move_storyboards_nibs(plist)
    assert plist.data == {"CFBundleIdentifier": "a"}


def test_add_intune_url_schemes_adds_suffix_once() -> None:
    plist = _info_plist()
    mam_config.add_intune_url_schemes(plist)
    mam_config.add_intune_url_schemes(plist)
    assert plist.url_types[0]["CFBundleURLSchemes"] == [
        "myapp",
        "other-intunemam",
        "myapp-intunemam",
    ]
    assert plist.url_types[1] == {"CFBundleURLName": "no-schemes"}


def test_add_intune_url_schemes_without_url_types_is_noop() -> None:
    plist = _file("x.plist", {})
    mam_config.add_intune_url_schemes(plist)
    assert plist.data == {}


def test_add_intune_app_queries_schemes_skips_mailto() -> None:
    plist = _info_plist()
    mam_config.add_intune_app_queries_schemes(plist)
    schemes = plist.application_queries_schemes
    assert schemes == [
        "mailto",
        "fb",
        "tel-intunemam",
        "http-intunemam",
        "https-intunemam",
        "ms-outlook-intunemam",
        "fb-intunemam",
    ]
    assert "mailto-intunemam" not in schemes


def test_add_intune_app_queries_schemes_creates_list() -> None:
    plist = _file("x.plist", {})
    mam_config.add_intune_app_queries_schemes(plist)
    assert plist.application_queries_schemes == [
        "http-intunemam",
        "https-intunemam",
        "ms-outlook-intunemam",
    ]


def test_configure_app_group_key_copies_groups() -> None:
    plist, ent = _info_plist(), _entitlements()
    mam_config.configure_app_group_key(plist, ent)
    assert plist.intune_settings == {"AppGroupIdentifiers": ["group.com.example.app"]}

    bare = _file("y.plist", {})
    mam_config.configure_app_group_key(bare, _file("e", {}))
    assert bare.data == {}


def test_set_mdmless_settings_forces_true() -> None:
    plist = _file("x.plist", {"IntuneMAMSettings": {"MAMPolicyRequired": False}})
    mam_config.set_mdmless_settings(plist)
    assert plist.intune_settings["MAMPolicyRequired"] is True
    assert plist.intune_settings["AutoEnrollOnLaunch"] is True


def test_full_pass_is_idempotent() -> None:
    plist, ent = _info_plist(), _entitlements()
    _run_all(plist, ent)
    first = (copy.deepcopy(plist.data), copy.deepcopy(ent.data))
    _run_all(plist, ent)
    assert (plist.data, ent.data) == first

    for url_type in plist.url_types:
        schemes = url_type.get("CFBundleURLSchemes", [])
        assert len(schemes) == len(set(schemes))
    assert len(plist.application_queries_schemes) == len(set(plist.application_queries_schemes))
    assert len(ent.keychain_access_groups) == len(set(ent.keychain_access_groups))


def test_configure_entitlements_and_plists_requires_loaded_files() -> None:
    with pytest.raises(SystemExit) as e:
        mam_config.configure_entitlements_and_plists({"a.entitlements": ["b.plist"]}, [])
    assert "file was not loaded: a.entitlements" in str(e.value)


def test_is_intune_mam_scheme() -> None:
    assert mam_config.is_intune_mam_scheme("myapp-intunemam") is True
    assert mam_config.is_intune_mam_scheme("myapp") is False
