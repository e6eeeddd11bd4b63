"""Audio output: live playback through sounddevice, or offline to a file.

``sounddevice`` is imported when a stream is first opened.  PortAudio is a
system library, and a machine without it should still be able to build graphs
and render files.
"""

import logging
import threading
import typing

import soundfile

import driftwave.session


logger = logging.getLogger(__name__)


class AudioDeviceError (Exception):

	"""The audio device could not be opened, or failed during playback."""


class AudioPlayer:

	"""
	Streams a :class:`~driftwave.session.Session` to an output device.

	``start()`` and ``stop()`` are the two transport controls.  The first
	``start()`` opens the device; after that, ``stop()`` only mutes, so the
	device stays open and the session keeps its state.
	"""

	def __init__ (
		self,
		session: driftwave.session.Session,
		block_size: int = 1024,
		device: typing.Optional[typing.Union[int, str]] = None,
		latency: typing.Optional[typing.Union[float, str]] = None,
		channels: int = 1
	) -> None:

		self.session = session
		self.block_size = block_size
		self.device = device
		self.latency = latency
		self.channels = channels

		self._sd: typing.Any = None
		self._stream: typing.Any = None
		self._finished = threading.Event()
		self._error: typing.Optional[BaseException] = None
		self._lock = threading.Lock()

	@property
	def is_open (self) -> bool:
		return self._stream is not None

	def open (self) -> None:

		"""Open and start the output stream.

		Safe to call from several threads; only one stream is ever opened.  A
		failure is remembered, and later calls re-raise it without trying the
		device again.

		Raises:
			AudioDeviceError: If PortAudio or the device is unavailable.
		"""

		with self._lock:

			if self._stream is not None:
				return

			self.raise_if_failed()

			try:
				self._stream = self._open_stream()

			except AudioDeviceError as e:
				self._error = e
				raise

		logger.info(f"Audio output open: device={self.device!r}, {self.session.sample_rate} Hz, block {self.block_size}")

	def _open_stream (self) -> typing.Any:

		try:
			import sounddevice  # noqa: PLC0415
		except OSError as e:
			raise AudioDeviceError(f"PortAudio is not available: {e}") from e

		self._sd = sounddevice
		self._finished.clear()

		try:
			stream = sounddevice.OutputStream(
				samplerate = self.session.sample_rate,
				blocksize = self.block_size,
				device = self.device,
				channels = self.channels,
				dtype = "float32",
				latency = self.latency,
				callback = self._callback,
				finished_callback = self._finished.set
			)
			stream.start()

		except Exception as e:
			raise AudioDeviceError(f"Failed to open audio output {self.device!r}: {e}") from e

		return stream

	def start (self) -> None:

		"""Begin or resume playback."""

		self.open()
		self.session.start()

	def stop (self) -> None:

		"""Mute playback without closing the device or resetting state."""

		self.session.stop()

	def close (self) -> None:

		"""Stop and release the device."""

		with self._lock:

			if self._stream is None:
				return

			self.session.stop()
			self._stream.stop()
			self._stream.close()
			self._stream = None

		self._finished.set()
		logger.info("Audio output closed")

	def raise_if_failed (self) -> None:

		"""Re-raise a failure that ended the stream or kept it from opening."""

		if isinstance(self._error, AudioDeviceError):
			raise self._error

		if self._error is not None:
			raise AudioDeviceError(f"Audio playback failed: {self._error}") from self._error

	def wait (self, timeout: typing.Optional[float] = None) -> bool:

		"""
		Block until the stream finishes (closed, or aborted by an error).

		Returns ``False`` on timeout.  Raises :class:`AudioDeviceError` if
		playback ended because of a failure.
		"""

		finished = self._finished.wait(timeout)
		self.raise_if_failed()
		return finished

	def _callback (self, outdata: typing.Any, frames: int, time_info: typing.Any, status: typing.Any) -> None:

		if status:
			logger.warning(f"Audio callback status: {status}")

		try:
			block = self.session.render_block(frames)
		except Exception as e:
			logger.exception("Rendering failed, aborting audio stream")
			self._error = e
			raise self._sd.CallbackAbort from e

		outdata[:] = block.reshape(-1, 1)


def render_to_file (
	session: driftwave.session.Session,
	filename: str,
	seconds: float,
	block_size: int = 1024,
	subtype: str = "PCM_16"
) -> int:

	"""
	Render ``seconds`` of audio to a mono sound file without real-time playback.

	The session is started first.  Returns the number of frames written.
	"""

	if seconds <= 0:
		raise ValueError(f"Render length must be positive, got {seconds}")

	total_frames = int(round(seconds * session.sample_rate))
	written = 0

	session.start()
	logger.info(f"Rendering {seconds:.1f}s to {filename}...")

	with soundfile.SoundFile(filename, mode="w", samplerate=session.sample_rate, channels=1, subtype=subtype) as f:

		while written < total_frames:
			frames = min(block_size, total_frames - written)
			f.write(session.render_block(frames))
			written += frames

	logger.info(f"Saved {filename} ({written} frames)")
	return written
