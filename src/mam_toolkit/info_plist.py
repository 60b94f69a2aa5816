"""
`Info.plist` 与 `*.entitlements` 的读写封装。

两类文件都是 plist 格式，因此共用 `PlistFile`；除特别说明外，所有"添加"方法
都不会覆盖已有数组元素，也不会产生重复项。
"""

from __future__ import annotations

import os
from typing import Any

from .plist_edit import (
    add_unique_to_array,
    delete_value,
    get_value,
    load_plist,
    save_plist,
    set_value,
)
from .types import MissingArgumentError

INTUNE_SETTINGS_KEY = "IntuneMAMSettings"
APP_IDENTIFIER_PREFIX = "$(AppIdentifierPrefix)"

MAIN_STORYBOARD = "UIMainStoryboardFile"
MAIN_STORYBOARD_IPAD = "UIMainStoryboardFile~ipad"
MAIN_NIB = "NSMainNibFile"
MAIN_NIB_IPAD = "NSMainNibFile~ipad"


class PlistFile:
    """绑定相对路径的 plist 文档；需先 `load()` 再使用。"""

    def __init__(self, filepath: str, platform_dir: str = ".") -> None:
        self.filepath = filepath
        self.platform_dir = platform_dir
        self.data: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"PlistFile({self.filepath!r})"

    @property
    def abspath(self) -> str:
        return os.path.join(self.platform_dir, self.filepath)

    def load(self) -> "PlistFile":
        """读取并解析文件，返回自身便于链式调用。"""
        obj = load_plist(self.abspath)
        if not isinstance(obj, dict):
            raise SystemExit(f"Error: plist root is not a dict: {self.abspath}")
        self.data = obj
        return self

    def save(self) -> None:
        """写回读取时的同一位置。"""
        save_plist(self.abspath, self.data)

    # --- Info.plist 基本信息 ---

    @property
    def bundle_identifier(self) -> str | None:
        return self.data.get("CFBundleIdentifier")

    @property
    def url_types(self) -> list[dict[str, Any]] | None:
        return self.data.get("CFBundleURLTypes")

    def url_schemes_from_url_type(self, url_type: dict[str, Any] | None) -> list[str]:
        """返回某个 URL type 下的 `CFBundleURLSchemes`。"""
        if not url_type or not url_type.get("CFBundleURLSchemes"):
            raise MissingArgumentError("Invalid argument url_type for url_schemes_from_url_type")
        return url_type["CFBundleURLSchemes"]

    def add_url_scheme_to_url_type(self, url_type: dict[str, Any] | None, scheme: str) -> None:
        if not url_type or not url_type.get("CFBundleURLSchemes"):
            raise MissingArgumentError("Invalid argument url_type for add_url_scheme_to_url_type")
        if not scheme:
            raise MissingArgumentError("Undefined argument scheme for add_url_scheme_to_url_type")
        add_unique_to_array(url_type, "CFBundleURLSchemes", scheme)

    @property
    def application_queries_schemes(self) -> list[str]:
        return self.data.get("LSApplicationQueriesSchemes") or []

    def add_application_queries_scheme(self, scheme: str) -> None:
        if not scheme:
            raise MissingArgumentError("Undefined argument for add_application_queries_scheme")
        add_unique_to_array(self.data, "LSApplicationQueriesSchemes", scheme)

    # --- 主 storyboard / nib ---

    @property
    def main_storyboard(self) -> str | None:
        return self.data.get(MAIN_STORYBOARD)

    @property
    def main_storyboard_ipad(self) -> str | None:
        return self.data.get(MAIN_STORYBOARD_IPAD)

    @property
    def main_nib(self) -> str | None:
        return self.data.get(MAIN_NIB)

    @property
    def main_nib_ipad(self) -> str | None:
        return self.data.get(MAIN_NIB_IPAD)

    def delete_main_storyboard(self) -> None:
        delete_value(self.data, MAIN_STORYBOARD)

    def delete_main_storyboard_ipad(self) -> None:
        delete_value(self.data, MAIN_STORYBOARD_IPAD)

    def delete_main_nib(self) -> None:
        delete_value(self.data, MAIN_NIB)

    def delete_main_nib_ipad(self) -> None:
        delete_value(self.data, MAIN_NIB_IPAD)

    # --- entitlements ---

    @property
    def application_groups(self) -> list[str] | None:
        return self.data.get("com.apple.security.application-groups")

    def add_keychain_access_group(self, group: str) -> None:
        """添加钥匙串访问组，自动加上 `$(AppIdentifierPrefix)` 前缀。"""
        if not group:
            raise MissingArgumentError("Undefined argument group for add_keychain_access_group")
        add_unique_to_array(self.data, "keychain-access-groups", APP_IDENTIFIER_PREFIX + group)

    @property
    def keychain_access_groups(self) -> list[str]:
        return self.data.get("keychain-access-groups") or []

    # --- IntuneMAMSettings ---

    @property
    def intune_settings(self) -> dict[str, Any] | None:
        return get_value(self.data, INTUNE_SETTINGS_KEY)

    def add_to_intune_settings(self, key: str, value: Any) -> None:
        """在 `IntuneMAMSettings` 中设置键值（字典不存在时创建，已有值覆盖）。"""
        set_value(self.data, f"{INTUNE_SETTINGS_KEY}:{key}", value)

    def add_storyboard_or_nib_to_intune(self, current_value: str, intune_key: str) -> None:
        if not intune_key:
            raise MissingArgumentError(
                "Undefined argument intune_key for add_storyboard_or_nib_to_intune"
            )
        if not current_value:
            raise MissingArgumentError(
                "Undefined argument current_value for add_storyboard_or_nib_to_intune"
            )
        self.add_to_intune_settings(intune_key, current_value)

    def add_app_group_settings(self, value: list[str]) -> None:
        if not value:
            raise MissingArgumentError("Undefined argument for add_app_group_settings")
        self.add_to_intune_settings("AppGroupIdentifiers", value)

    def set_mam_policy_required(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise TypeError(f"Invalid argument for set_mam_policy_required: {value!r}")
        self.add_to_intune_settings("MAMPolicyRequired", value)

    def set_auto_enroll_on_launch(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise TypeError(f"Invalid argument for set_auto_enroll_on_launch: {value!r}")
        self.add_to_intune_settings("AutoEnrollOnLaunch", value)
