"""
Service configuration for FilterContigs.
The callback URL and scratch directory are supplied by the hosting
environment and handed to the pipeline as one explicit value.
"""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

SERVICE_NAME = "FilterContigs"
DEFAULT_SCRATCH = "/kb/module/work/tmp"

@dataclass(frozen=True)
class ServiceConfig:
    """
    Per-coordinator configuration. Several instances can coexist in one process.
    """
    callback_url: str
    scratch: Path
    service_name: str = SERVICE_NAME
    timeout: float = 1800.0
    output_filename: str = "filtered.fasta"

    def __post_init__(self):
        object.__setattr__(self, "callback_url", check_callback_url(self.callback_url))
        object.__setattr__(self, "scratch", Path(self.scratch))

    @property
    def output_path(self) -> Path:
        return self.scratch / self.output_filename

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """
        Read SDK_CALLBACK_URL and the scratch path from the environment.

        The scratch path comes from the service's section of the INI file named
        by KB_DEPLOYMENT_CONFIG, then the SCRATCH variable, then a default.

        :param environ: Environment mapping, os.environ when omitted.
        :return: A ServiceConfig.
        """
        environ = os.environ if environ is None else environ
        scratch = None
        deploy_cfg = environ.get("KB_DEPLOYMENT_CONFIG")
        if deploy_cfg:
            scratch = read_deploy_config(deploy_cfg).get("scratch")
        if not scratch:
            scratch = environ.get("SCRATCH", DEFAULT_SCRATCH)
        return cls(callback_url=environ.get("SDK_CALLBACK_URL", ""), scratch=Path(scratch))

def check_callback_url(url: Optional[str]) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid SDK callback url: {url}")
    return url

def read_deploy_config(path: str, section: str = SERVICE_NAME) -> dict:
    """
    Load one section of the deployment INI file as a plain dict.

    :param path: Path to the deploy.cfg file.
    :param section: Section to read.
    :return: Key/value pairs, empty if the section is missing.
    """
    parser = configparser.ConfigParser()
    if not parser.read(path, encoding="utf-8"):
        raise FileNotFoundError(f"Deployment config not found: {path}")
    if not parser.has_section(section):
        return {}
    return dict(parser.items(section))
