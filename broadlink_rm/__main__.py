#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import asyncio
import logging

import dotenv

from broadlink_rm.internal_types import *
from broadlink_rm import (
    __version__ as pkg_version,
    RmClientConfig,
    RmDiscoveryEngine,
    DeviceSession,
    full_class_name,
  )

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

def session_to_jsonable(session: DeviceSession) -> JsonableDict:
    return dict(
        identity=session.identity_str,
        host=session.host[0],
        port=session.host[1],
        device_type=f"0x{session.device_type:04x}",
        model=session.model_name,
        rf_capable=session.is_rf_capable,
      )

def parse_identity(identity_str: str) -> bytes:
    try:
        identity = bytes.fromhex(identity_str.replace(':', '').replace('-', ''))
    except ValueError as e:
        raise CmdExitError(1, f"Invalid device identity {identity_str!r}: {e}") from e
    if len(identity) != 6:
        raise CmdExitError(1, f"Device identity must be 6 bytes: {identity_str!r}")
    return identity

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True
    _config: RmClientConfig

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    def get_config(self) -> RmClientConfig:
        config_file: Optional[str] = self._args.config_file
        if config_file is None:
            base_config = RmClientConfig()
        else:
            base_config = RmClientConfig.from_config_file(config_file)
        bind_addresses: List[str] = getattr(self._args, 'bind_addresses', [])
        wait_time: Optional[float] = getattr(self._args, 'wait_time', None)
        return RmClientConfig(
            broadcast_address=self._args.broadcast_address,
            bind_addresses=bind_addresses if len(bind_addresses) > 0 else None,
            discovery_wait_secs=wait_time,
            base_config=base_config,
          )

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    async def find_session(self, engine: RmDiscoveryEngine) -> DeviceSession:
        """Runs discovery and returns the ready session selected by --identity, or the
           first ready session if no identity was given."""
        identity_str: Optional[str] = self._args.identity
        identity = None if identity_str is None else parse_identity(identity_str)
        sessions = await engine.wait_for_devices()
        for session in sessions:
            if identity is None or session.identity == identity:
                return session
        if identity is None:
            raise CmdExitError(1, "No RM device found")
        raise CmdExitError(1, f"RM device {identity_str} not found")

    async def cmd_discover(self) -> int:
        async with RmDiscoveryEngine(config=self._config) as engine:
            sessions = await engine.wait_for_devices()
            print(json.dumps([ session_to_jsonable(session) for session in sessions ], indent=2))
        return 0

    async def cmd_temperature(self) -> int:
        async with RmDiscoveryEngine(config=self._config) as engine:
            session = await self.find_session(engine)
            value = await session.get_temperature()
            result = session_to_jsonable(session)
            result.update(temperature=value)
            print(json.dumps(result, indent=2))
        return 0

    async def cmd_learn_ir(self) -> int:
        async with RmDiscoveryEngine(config=self._config) as engine:
            session = await self.find_session(engine)
            print(f"Point the remote at {session.identity_str} and press the button to learn...", file=sys.stderr)
            try:
                code = await session.learn_ir_code()
            except asyncio.TimeoutError as e:
                raise CmdExitError(1, f"No IR code received within {self._config.ir_learn_timeout_secs} seconds") from e
            result = session_to_jsonable(session)
            result.update(code=code.hex())
            print(json.dumps(result, indent=2))
        return 0

    async def cmd_learn_rf(self) -> int:
        async with RmDiscoveryEngine(config=self._config) as engine:
            session = await self.find_session(engine)
            print(f"Press and hold the remote button near {session.identity_str}...", file=sys.stderr)
            await session.sweep_frequency()
            print("Frequency found. Release the button, then press it again briefly...", file=sys.stderr)
            code = await session.confirm_frequency()
            result = session_to_jsonable(session)
            result.update(code=code.hex())
            print(json.dumps(result, indent=2))
        return 0

    async def cmd_send(self) -> int:
        code_hex: str = self._args.code
        try:
            code = bytes.fromhex(code_hex)
        except ValueError as e:
            raise CmdExitError(1, f"Code is not valid hex: {e}") from e
        async with RmDiscoveryEngine(config=self._config) as engine:
            session = await self.find_session(engine)
            result = session_to_jsonable(session)
            try:
                sent = session.send_code(code)
            except Exception as exc:
                error_classname = full_class_name(exc)
                error_message = str(exc)
                if error_message == "":
                    error_message = error_classname
                result.update(error=error_classname, error_message=error_message)
                print(json.dumps(result, indent=2))
                raise
            result.update(sent=sent)
            print(json.dumps(result, indent=2))
            if not sent:
                raise CmdExitError(1, "Code could not be sent")
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the broadlink-rm command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(description="Discover and control Broadlink RM remotes.")

        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('-c', '--config', dest='config_file', default=None,
                            help='''A JSON configuration file. Default: use env var BROADLINK_RM_CONFIG_FILE.''')
        parser.add_argument('--broadcast', dest='broadcast_address', default=None,
                            help='''The address to broadcast discovery packets to. Default: 255.255.255.255.''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')

        def add_discovery_args(subparser: argparse.ArgumentParser, with_identity: bool=True) -> None:
            subparser.add_argument('-b', '--bind', dest="bind_addresses", action='append', default=[],
                            help='''The local unicast IP address to broadcast from. May be repeated. Default: all local non-loopback unicast addresses.''')
            subparser.add_argument('-w', '--wait', dest="wait_time", type=float, default=None,
                            help='''Seconds to wait for devices to answer. Default: 5.0''')
            if with_identity:
                subparser.add_argument('-i', '--identity', default=None,
                            help='''The identity (MAC address) of the device to use. Default: the first device found.''')

        # ======================= discover

        parser_discover = subparsers.add_parser('discover', description="Find RM devices on the local subnet and list those that complete a handshake")
        add_discovery_args(parser_discover, with_identity=False)
        parser_discover.set_defaults(func=self.cmd_discover)

        # ======================= temperature

        parser_temperature = subparsers.add_parser('temperature', description="Read the temperature sensor of an RM device.")
        add_discovery_args(parser_temperature)
        parser_temperature.set_defaults(func=self.cmd_temperature)

        # ======================= learn-ir

        parser_learn_ir = subparsers.add_parser('learn-ir', description="Learn an infrared code. The code is printed as hex.")
        add_discovery_args(parser_learn_ir)
        parser_learn_ir.set_defaults(func=self.cmd_learn_ir)

        # ======================= learn-rf

        parser_learn_rf = subparsers.add_parser('learn-rf', description="Learn an RF code with a frequency sweep followed by a confirming press. The code is printed as hex.")
        add_discovery_args(parser_learn_rf)
        parser_learn_rf.set_defaults(func=self.cmd_learn_rf)

        # ======================= send

        parser_send = subparsers.add_parser('send', description="Transmit a previously learned code.")
        add_discovery_args(parser_send)
        parser_send.add_argument('code',
                            help='''The learned code, as hex.''')
        parser_send.set_defaults(func=self.cmd_send)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            self._config = self.get_config()
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            ex_desc = str(ex)
            if len(ex_desc) == 0:
                ex_desc = ex.__class__.__name__
            print(f"broadlink-rm: error: {ex_desc}", file=sys.stderr)
        except BaseException as ex:
            print(f"broadlink-rm: Unhandled exception {ex.__class__.__name__}: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        return asyncio.run(self.arun())

def run(argv: Optional[Sequence[str]]=None) -> int:
    dotenv.load_dotenv()
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    sys.exit(run())
