import os
import shlex
import sys
import traceback
from typing import Dict, NamedTuple

import yaml
from click.testing import CliRunner

sys.path.append(os.path.dirname(__file__) + "/..")

from nobuild.scripts.cli import cli, ErrorCode


class Result(NamedTuple):
    out: str
    ret_code: int
    file_contents: Dict[str, str]


def run_nobuild(args: str, settings: dict = None, files: Dict[str, str] = None,
                expect_success: bool = True, raise_exc: bool = False) -> Result:
    """
    Run nobuild with the passed arguments in an isolated directory

    :param args: arguments for nobuild
    :param settings: settings dictionary, stored in a file called `settings.yaml` and passed via `--settings`
    :param files: {file name: content}, created before nobuild is run
    :param expect_success: expect a zero return code
    :param raise_exc: raise exceptions that occurred while running nobuild
    :return: result of the call
    """
    runner = CliRunner()
    with runner.isolated_filesystem():
        for file, content in (files or {}).items():
            with open(file, "w") as f:
                f.write(content)
        arg_list = shlex.split(args)
        if settings is not None:
            with open("settings.yaml", "w") as f:
                yaml.dump(settings, f)
            arg_list.extend(["--settings", "settings.yaml"])
        result = runner.invoke(cli, arg_list, catch_exceptions=True)
        file_contents = {}
        for f in os.listdir("."):
            if os.path.isfile(f) and f != "settings.yaml" and f not in (files or {}):
                with open(f) as fs:
                    file_contents[f] = fs.read()
        ret = Result(result.output.strip(), result.exit_code, file_contents)
        if result.exception and not isinstance(result.exception, SystemExit):
            print("".join(traceback.format_exception(None, result.exception, result.exception.__traceback__)),
                  file=sys.stderr)
            if raise_exc:
                raise result.exception
        if expect_success:
            assert result.exit_code == ErrorCode.NO_ERROR.value, repr(ret)
        return ret
