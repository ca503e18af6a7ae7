"""Command line entry point: deploy a local podman pod to the current cluster."""

import argparse
import asyncio
import logging
import sys

from .cluster import connect
from .config import get_settings
from .engine import PodmanEngine
from .session import DeploySession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pod-deployer",
        description="Deploy a local podman pod to Kubernetes or OpenShift",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Print the manifest that would be deployed")
    render.add_argument("pod", help="Podman pod name")
    render.add_argument("--name", help="Name to give the deployed pod")

    deploy = sub.add_parser("deploy", help="Deploy a pod")
    deploy.add_argument("pod", help="Podman pod name")
    deploy.add_argument("--name", help="Name to give the deployed pod")
    deploy.add_argument("--namespace", "-n", help="Target namespace")
    deploy.add_argument("--no-services", action="store_true",
                        help="Do not create a Service per published port")
    deploy.add_argument("--no-routes", action="store_true",
                        help="Do not create OpenShift routes")
    deploy.add_argument("--ingress", action="store_true",
                        help="Create an Ingress (non-OpenShift clusters)")
    deploy.add_argument("--ingress-port", type=int,
                        help="Container port the Ingress targets when several are published")
    deploy.add_argument("--restricted", action="store_true",
                        help="Apply the restricted pod security context")
    deploy.add_argument("--no-wait", action="store_true",
                        help="Do not wait for the pod to be running")
    return parser


async def _render(args) -> int:
    settings = get_settings()
    engine = PodmanEngine(settings.podman_binary)
    session = DeploySession(resources=None, engine=engine, settings=settings)
    await session.load_pod(args.pod)
    if args.name:
        session.rename_pod(args.name)
    print(session.manifest_text)
    return 0


async def _deploy(args) -> int:
    settings = get_settings()
    engine = PodmanEngine(settings.podman_binary)
    resources = connect(settings)

    try:
        async with DeploySession(resources, engine=engine, settings=settings) as session:
            await session.discover()
            await session.load_pod(args.pod)
            if args.name:
                session.rename_pod(args.name)

            session.options.namespace = args.namespace
            session.options.use_services = not args.no_services
            session.options.use_routes = not args.no_routes
            session.options.create_ingress = args.ingress
            session.options.ingress_port = args.ingress_port
            session.options.use_restricted_security_context = args.restricted

            outcome = await session.deploy()
            if session.warning:
                print(f"Warning: {session.warning}", file=sys.stderr)
                if session.ingress_ports:
                    ports = ", ".join(str(p) for p in session.ingress_ports)
                    print(f"Available ports: {ports}", file=sys.stderr)
                return 2
            if outcome is None:
                print(f"Error: {session.error}", file=sys.stderr)
                return 1

            print(f"Created pod {outcome.namespace}/{outcome.pod_name}")
            for service in outcome.services:
                print(f"Created service {service}")
            for url in outcome.route_urls:
                print(f"Route: {url}")
            if outcome.ingress:
                print(f"Created ingress {outcome.ingress}")
            if session.console_pod_url:
                print(f"Console: {session.console_pod_url}")

            if not args.no_wait:
                await session.wait_until_running()
                print(f"Pod {outcome.pod_name} is running")
    finally:
        resources.cluster.close()
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    handler = _render if args.command == "render" else _deploy
    try:
        return asyncio.run(handler(args))
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down...")
        return 130
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
