from __future__ import annotations

"""
流程通用工具：阶段日志与外部命令执行。
"""

import subprocess

LOG_PREFIX = "[mam-toolkit]"


def log_step(message: str) -> None:
    """输出简洁的流程阶段提示。"""
    print(f"{LOG_PREFIX} {message}")


def run_cmd(cmd: list[str], *, cwd: str | None = None, verbose: bool = False) -> bytes:
    """执行外部命令并返回 stdout，失败时抛出带 stderr 的异常。"""
    if verbose:
        if cwd:
            print(f"+ (cd {cwd}) {' '.join(cmd)}")
        else:
            print(f"+ {' '.join(cmd)}")
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, cwd=cwd, check=False)
    if p.returncode != 0:
        raise RuntimeError(f"Command failed: {' '.join(cmd)}\n{p.stderr.decode(errors='replace')}")
    return p.stdout
