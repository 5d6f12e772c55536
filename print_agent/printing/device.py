"""
Device sinks: execute printer directives against ESC/POS hardware.

The DeviceSink interface hides the transport, so the processor and the
renderer never know whether the printer sits on USB, the network or a serial
line. Each print opens a fresh connection and always closes it again.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Optional

from print_agent.core.config import AgentConfig
from print_agent.errors import ConfigError, DeviceError
from print_agent.printing.directives import (
    ALIGN_CENTER,
    Close,
    Cut,
    Directive,
    Feed,
    SetAlign,
    SetEmphasis,
    SetSize,
    Text,
)
from print_agent.printing.render import to_plain_text

logger = logging.getLogger(__name__)


class DeviceSink(ABC):
    """Capability interface for anything that can print a directive sequence."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the device. Raises DeviceError if it cannot be reached."""

    @abstractmethod
    def submit(self, directives: Iterable[Directive]) -> None:
        """Send directives to an opened device. Raises DeviceError on write failure."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Must not raise."""

    def print_directives(self, directives: Iterable[Directive]) -> None:
        """Open, submit and close; the device is closed whatever happens."""
        self.open()
        try:
            self.submit(directives)
        finally:
            self.close()


class EscposDevice(DeviceSink):
    """
    Drives a python-escpos printer. Subclasses only decide how to connect.
    """

    kind = "escpos"

    def __init__(self, profile: Optional[str] = None):
        self.profile = profile or None
        self._printer: Any = None

    @abstractmethod
    def _connect(self) -> Any:
        """Create and open the python-escpos printer object."""

    @property
    def is_open(self) -> bool:
        return self._printer is not None

    def open(self) -> None:
        if self._printer is not None:
            return
        try:
            self._printer = self._connect()
        except DeviceError:
            raise
        except Exception as e:
            raise DeviceError(f"{self.kind.upper()} printer not found: {e}") from e
        logger.info("Printer connection established (%s)", self.describe())

    def submit(self, directives: Iterable[Directive]) -> None:
        if self._printer is None:
            raise DeviceError("Printer is not open")
        try:
            for d in directives:
                self._apply(d)
        except Exception as e:
            # Best-effort close so the next attempt starts from a clean handle
            self.close()
            if isinstance(e, DeviceError):
                raise
            raise DeviceError(f"Printer write failed: {e}") from e

    def close(self) -> None:
        p = self._printer
        if p is None:
            return
        self._printer = None
        try:
            p.close()
            logger.info("Printer connection closed")
        except Exception as e:
            logger.warning("Printer close failed (ignored): %s", e)

    def describe(self) -> str:
        return self.kind

    def _apply(self, d: Directive) -> None:
        p = self._printer
        if isinstance(d, Text):
            p.text(f"{d.line}\n")
        elif isinstance(d, SetAlign):
            p.set(align="center" if d.align == ALIGN_CENTER else "left")
        elif isinstance(d, SetEmphasis):
            p.set(bold=d.on)
        elif isinstance(d, SetSize):
            if d.scale == 2:
                p.set(double_width=True, double_height=True)
            else:
                p.set(normal_textsize=True)
        elif isinstance(d, Feed):
            if d.lines > 0:
                p.text("\n" * d.lines)
        elif isinstance(d, Cut):
            p.cut()
        elif isinstance(d, Close):
            self.close()
        else:
            raise DeviceError(f"Unsupported directive: {d!r}")


class UsbDevice(EscposDevice):
    kind = "usb"

    def __init__(self, vendor_id: int, product_id: int, profile: Optional[str] = None):
        super().__init__(profile)
        self.vendor_id = vendor_id
        self.product_id = product_id

    def describe(self) -> str:
        return f"usb {self.vendor_id:#06x}:{self.product_id:#06x}"

    def _connect(self) -> Any:
        from escpos.printer import Usb

        if self.profile:
            p = Usb(self.vendor_id, self.product_id, profile=self.profile)
        else:
            p = Usb(self.vendor_id, self.product_id)
        p.open()
        return p


class NetworkDevice(EscposDevice):
    kind = "network"

    def __init__(self, host: str, port: int = 9100, timeout: float = 10.0, profile: Optional[str] = None):
        super().__init__(profile)
        self.host = host
        self.port = port
        self.timeout = timeout

    def describe(self) -> str:
        return f"network {self.host}:{self.port}"

    def _connect(self) -> Any:
        from escpos.printer import Network

        if not self.host:
            raise DeviceError("Network printer has no host configured")
        if self.profile:
            p = Network(self.host, self.port, timeout=self.timeout, profile=self.profile)
        else:
            p = Network(self.host, self.port, timeout=self.timeout)
        p.open()
        return p


class SerialDevice(EscposDevice):
    kind = "serial"

    def __init__(self, port: str, baudrate: int = 19200, profile: Optional[str] = None):
        super().__init__(profile)
        self.port = port
        self.baudrate = baudrate

    def describe(self) -> str:
        return f"serial {self.port}@{self.baudrate}"

    def _connect(self) -> Any:
        from escpos.printer import Serial

        if not self.port:
            raise DeviceError("Serial printer has no port configured")
        if self.profile:
            p = Serial(self.port, baudrate=self.baudrate, profile=self.profile)
        else:
            p = Serial(self.port, baudrate=self.baudrate)
        p.open()
        return p


class DummyDevice(EscposDevice):
    """
    Captures the ESC/POS byte stream instead of printing; used for dry runs.
    The last job's bytes are kept on `last_output`.
    """

    kind = "dummy"

    def __init__(self, profile: Optional[str] = None):
        super().__init__(profile)
        self.last_output: bytes = b""

    def _connect(self) -> Any:
        from escpos.printer import Dummy

        return Dummy(profile=self.profile) if self.profile else Dummy()

    def close(self) -> None:
        p = self._printer
        if p is not None:
            self.last_output = bytes(p.output)
            logger.info("Dummy printer captured %d bytes", len(self.last_output))
        super().close()

    def print_directives(self, directives: Iterable[Directive]) -> None:
        directives = tuple(directives)
        logger.info("Dry run receipt:\n%s", to_plain_text(directives))
        super().print_directives(directives)


def create_device(config: AgentConfig) -> DeviceSink:
    """
    Build the device sink selected by `printer_type`.
    Supports USB, Network, Serial and Dummy with optional 'printer_profile'.
    """
    ptype = config.printer_type
    profile = config.printer_profile
    if ptype == "usb":
        return UsbDevice(int(config.usb_vendor_id, 16), int(config.usb_product_id, 16), profile=profile)
    if ptype == "network":
        return NetworkDevice(config.network_ip, config.network_port, timeout=config.request_timeout, profile=profile)
    if ptype == "serial":
        return SerialDevice(config.serial_port, config.serial_baudrate, profile=profile)
    if ptype == "dummy":
        return DummyDevice(profile=profile)
    raise ConfigError(f"Unsupported printer type: {ptype}")


__all__ = [
    "DeviceSink",
    "DummyDevice",
    "EscposDevice",
    "NetworkDevice",
    "SerialDevice",
    "UsbDevice",
    "create_device",
]
