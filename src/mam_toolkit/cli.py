"""
`mam-toolkit` 的命令行入口模块。

负责定位 Cordova iOS 平台目录与 Xcode 工程，并调用
`mam_toolkit.mam_config.configure_intune_mam` 完成 MAM 配置。
"""

import argparse
import os
import sys
from collections.abc import Sequence

from .build_settings import configure_build_settings
from .inspect import inspect_project, print_project_info
from .mam_config import configure_intune_mam
from .pipeline_utils import log_step
from .xcode_project import load_xcode_project

DEFAULT_PLATFORM_DIR = os.path.join("platforms", "ios")


def _choose_candidate(
    *,
    kind: str,
    candidates: list[str],
    required_flag: str,
    context: str,
) -> str:
    """当候选有多个时，交互式让用户选择；非交互环境则报错。"""
    ordered = sorted(os.path.abspath(x) for x in candidates)
    if not sys.stdin.isatty():
        names = ", ".join(os.path.basename(x) for x in ordered)
        raise SystemExit(
            f"Error: multiple {kind} found {context} in non-interactive mode.\n"
            f"Candidates: {names}\n"
            f"Please pass the desired one via {required_flag}.\n"
        )

    print(f"Multiple {kind} found {context}. Please choose one:")
    for i, path in enumerate(ordered, start=1):
        print(f"  {i}) {path}")

    while True:
        raw = input(f"Select {kind} [1-{len(ordered)}]: ").strip()
        if raw.isdigit():
            idx = int(raw)
            if 1 <= idx <= len(ordered):
                selected = ordered[idx - 1]
                print(f"Selected {kind}: {selected}")
                return selected
        print("Invalid selection. Please enter a valid number.")


def _find_xcodeproj(platform_dir: str) -> str:
    """在平台目录下自动发现 `.xcodeproj`。"""
    candidates: list[str] = []
    with os.scandir(platform_dir) as it:
        for entry in it:
            if entry.is_dir() and entry.name.endswith(".xcodeproj"):
                candidates.append(entry.path)

    if len(candidates) == 1:
        return os.path.abspath(candidates[0])
    if len(candidates) > 1:
        return _choose_candidate(
            kind=".xcodeproj bundles",
            candidates=candidates,
            required_flag="-x/--project",
            context=f"in {platform_dir}",
        )
    raise SystemExit(
        f"Error: missing -x/--project and no .xcodeproj found in {platform_dir}.\n"
        "Hint: run `cordova prepare ios` first, or pass the project via -x.\n"
    )


def build_parser() -> argparse.ArgumentParser:
    """构建并返回 `mam-toolkit` 命令行参数解析器。"""
    p = argparse.ArgumentParser(
        prog="mam-toolkit",
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "Patch a Cordova iOS platform (Xcode project, Info.plist, entitlements)\n"
            "so the app can be managed by the Intune MAM SDK.\n"
            "All steps are idempotent; running twice changes nothing."
        ),
    )
    p.add_argument(
        "-d",
        "--platform-dir",
        default=DEFAULT_PLATFORM_DIR,
        help=f"Cordova iOS platform directory (default: {DEFAULT_PLATFORM_DIR})",
    )
    p.add_argument(
        "-x",
        "--project",
        default="",
        help="Xcode project (.xcodeproj or project.pbxproj); auto-detected in platform dir",
    )
    p.add_argument(
        "-c",
        "--configurator",
        default="",
        help="IntuneMAMConfigurator binary used to add Intune UTIs to each Info.plist",
    )
    p.add_argument(
        "--library",
        default="",
        help="Path of the Intune MAM static library to force-load (optional)",
    )
    p.add_argument(
        "--headers",
        default="",
        help="Header search path for the Intune MAM headers (used with --library)",
    )
    p.add_argument(
        "--skip-utis",
        action="store_true",
        help="Do not run the configurator even when -c is given",
    )
    p.add_argument(
        "--inspect",
        action="store_true",
        help="Only print configurations and their plist/entitlements files",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Apply changes in memory only; write no files and run no configurator",
    )
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    """CLI 入口：解析参数、定位工程并执行 MAM 配置流程。"""
    parser = build_parser()
    ns = parser.parse_args(argv)
    if ns.inspect and ns.dry_run:
        raise SystemExit("Error: --inspect and --dry-run cannot be used together.")
    if ns.headers and not ns.library:
        raise SystemExit("Error: --headers requires --library.")

    def _abs(p: str) -> str:
        """将输入路径展开为绝对路径，统一后续文件校验逻辑。"""
        return os.path.abspath(os.path.expanduser(p))

    platform_dir = _abs(ns.platform_dir)
    if not os.path.isdir(platform_dir):
        raise SystemExit(f"Error: platform dir not found: {platform_dir}")
    log_step(f"Platform dir: {platform_dir}")

    if ns.project:
        project_path = _abs(ns.project)
        log_step(f"Using project: {project_path}")
    else:
        project_path = _find_xcodeproj(platform_dir)
        log_step(f"Auto project: {project_path}")
    project = load_xcode_project(project_path, verbose=bool(ns.verbose))

    if ns.inspect:
        print_project_info(inspect_project(project))
        return 0

    if ns.library:
        log_step("Configuring build settings for the MAM library")
        configure_build_settings(
            project,
            library_path=ns.library,
            header_path=ns.headers,
            verbose=bool(ns.verbose),
        )

    configurator_path = "" if ns.skip_utis else (_abs(ns.configurator) if ns.configurator else "")
    if ns.dry_run:
        log_step("Dry-run mode enabled (no file modifications)")
    info = configure_intune_mam(
        project,
        platform_dir=platform_dir,
        configurator_path=configurator_path,
        dry_run=bool(ns.dry_run),
        verbose=bool(ns.verbose),
    )

    if not ns.dry_run:
        log_step(f"Saving project: {project.filepath}")
        project.save()

    print("Done:")
    print(f"  Project     : {project.filepath}")
    print(f"  Files       : {len(info.files)}")
    for name in info.created:
        print(f"  Created     : {name}")
    if ns.dry_run:
        print("  Mode        : dry-run")
    return 0
