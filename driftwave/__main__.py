import argparse
import logging
import sys
import typing

import driftwave.arrangement
import driftwave.config
import driftwave.player


logger = logging.getLogger("driftwave")


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	"""
	Parse command line arguments.
	"""

	parser = argparse.ArgumentParser(prog="driftwave", description="Generative electronic music, computed sample by sample.")
	parser.add_argument("--config", default="driftwave.yaml", help="YAML config file (default: driftwave.yaml)")
	parser.add_argument("--log-level", default=None, help="Override the configured log level")
	parser.add_argument("--seed", type=int, default=None, help="Repeat the same note choices on every run")

	commands = parser.add_subparsers(dest="command", required=True)

	play = commands.add_parser("play", help="Play to the audio device until Ctrl+C")
	play.add_argument("--device", default=None, help="Output device name or index")

	web = commands.add_parser("web", help="Serve a browser Start/Stop page")
	web.add_argument("--device", default=None, help="Output device name or index")
	web.add_argument("--http-port", type=int, default=None)
	web.add_argument("--ws-port", type=int, default=None)
	web.add_argument("--osc", action="store_true", help="Also accept OSC /start and /stop")

	render = commands.add_parser("render", help="Render to a sound file")
	render.add_argument("seconds", type=float)
	render.add_argument("--output", default="render.wav")

	return parser.parse_args(argv)


def _device (value: typing.Optional[str]) -> typing.Optional[typing.Union[int, str]]:

	if value is not None and value.isdigit():
		return int(value)

	return value


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the driftwave application.
	"""

	args = parse_args(argv)
	config = driftwave.config.load_config(args.config)

	logging.basicConfig(level=(args.log_level or config.log_level).upper())

	if getattr(args, "device", None) is not None:
		config.audio.device = _device(args.device)

	arrangement = driftwave.arrangement.Arrangement(config, seed=args.seed)

	try:
		if args.command == "render":
			arrangement.render(args.seconds, args.output)

		elif args.command == "web":
			arrangement.web_ui(http_port=args.http_port, ws_port=args.ws_port)
			if args.osc:
				arrangement.osc()
			arrangement.play(autostart=False)

		else:
			arrangement.play()

	except driftwave.player.AudioDeviceError as e:
		logger.error(str(e))
		return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
