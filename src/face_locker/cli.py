"""CLI entry point for Face Locker.

Usage:
    face-locker verify IDENTITY [--contact EMAIL] [--config PATH] [--debug]
    face-locker calibrate [--samples N]
    face-locker check-gallery IDENTITY [--gallery DIR]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _load_settings(args):
    """Reload the global config from --config when given."""
    from .constants import get_config

    config = get_config()
    if args.config:
        path = Path(args.config)
        if not path.exists():
            logger.warning(f"Config file not found: {args.config}")
        config.reload(path)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    return config


def _gallery_storage(args, config):
    from .recognition import DirectoryGalleryStorage

    root = args.gallery or config.gallery.root
    return DirectoryGalleryStorage(root, max_images=config.gallery.max_images)


def _load_capability():
    from .detection import DlibFaceCapability
    from .errors import ModelLoadError

    capability = DlibFaceCapability()
    try:
        capability.load()
    except ModelLoadError as e:
        logger.error(f"✗ {e}")
        return None
    return capability


def cmd_verify(args):
    """Run one verification session against the camera."""
    from .alerts import AttemptLogNotifier, EmailNotifier, NotificationManager
    from .detection import DlibFaceCapability
    from .orchestrator import VerificationOrchestrator
    from .sensors import Camera

    config = _load_settings(args)

    dispatcher = None
    if config.notifications.enabled:
        dispatcher = NotificationManager()
        if config.notifications.log_dir:
            dispatcher.add_notifier(
                AttemptLogNotifier(config.notifications.log_dir, config.notifications.jpeg_quality)
            )
        dispatcher.add_notifier(EmailNotifier(config.notifications))

    orchestrator = VerificationOrchestrator(
        capability=DlibFaceCapability(config.models),
        frame_source=Camera(config.camera),
        storage=_gallery_storage(args, config),
        dispatcher=dispatcher,
    )

    async def run():
        outcome = await orchestrator.verify(args.identity, contact=args.contact)
        await orchestrator.wait_for_alerts()
        return outcome

    try:
        outcome = asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Verification interrupted")
        return 130

    if outcome is None:
        return 1

    if outcome.verified:
        logger.info(f"✓ {args.identity} verified (distance {outcome.match.distance:.3f})")
        return 0

    logger.error(f"✗ {outcome.message}")
    return 1


def cmd_calibrate(args):
    """Measure the user's open-eye EAR and print the blink threshold."""
    from .liveness import BlinkDetector
    from .sensors import Camera
    from .errors import CameraUnavailable

    config = _load_settings(args)
    capability = _load_capability()
    if capability is None:
        return 1

    detector = BlinkDetector(capability, config=config.liveness)
    try:
        with Camera(config.camera) as camera:
            threshold = asyncio.run(detector.calibrate(camera, sample_count=args.samples))
    except CameraUnavailable as e:
        logger.error(f"✗ {e}")
        return 1

    status = "calibrated" if detector.state.calibrated else "default (no face seen)"
    print(f"Blink threshold: {threshold:.3f} [{status}]")
    return 0


def cmd_check_gallery(args):
    """Check that an identity has enough usable enrollment images."""
    from .detection import DescriptorExtractor
    from .errors import InsufficientEnrollmentData
    from .recognition import GalleryLoader

    config = _load_settings(args)
    capability = _load_capability()
    if capability is None:
        return 1

    storage = _gallery_storage(args, config)
    loader = GalleryLoader(storage, DescriptorExtractor(capability, config.extraction), config.gallery)

    try:
        gallery = loader.build_gallery(args.identity, storage.list_enrollment_images(args.identity))
    except InsufficientEnrollmentData as e:
        logger.error(f"✗ {e}")
        return 1

    print(f"{gallery.owner}: {len(gallery)} usable reference descriptors")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="face-locker",
        description="Blink-liveness face verification for lockers",
    )
    parser.add_argument("--config", "-c", help="Path to config.yaml")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    verify = subparsers.add_parser("verify", help="Verify a live face against an identity")
    verify.add_argument("identity", help="Enrolled identity")
    verify.add_argument("--contact", help="E-mail address for intruder alerts")
    verify.add_argument("--gallery", help="Enrollment image root directory")
    verify.set_defaults(func=cmd_verify)

    calibrate = subparsers.add_parser("calibrate", help="Calibrate the blink threshold")
    calibrate.add_argument("--samples", type=int, default=10, help="Frames to sample")
    calibrate.set_defaults(func=cmd_calibrate)

    check = subparsers.add_parser("check-gallery", help="Check enrollment image quorum")
    check.add_argument("identity", help="Enrolled identity")
    check.add_argument("--gallery", help="Enrollment image root directory")
    check.set_defaults(func=cmd_check_gallery)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
