import getpass
import unittest

from hook_deployer.deployment import Deployment
from hook_deployer.destination import Destination, resolve


class DestinationTests(unittest.TestCase):
    def test_default_is_local_current_directory(self) -> None:
        dest = Destination()
        self.assertTrue(dest.is_local)
        self.assertIsNone(dest.user)
        self.assertEqual(dest.path, ".")
        self.assertEqual(dest, Destination.local())

    def test_remote_requires_host(self) -> None:
        with self.assertRaises(ValueError):
            Destination.remote("dovahkiin", "")

    def test_parse_user_host_path(self) -> None:
        dest = Destination.parse("dovahkiin@skyrim:/srv/app")
        self.assertEqual(dest, Destination.remote("dovahkiin", "skyrim", "/srv/app"))
        self.assertFalse(dest.is_local)

    def test_parse_host_without_user_uses_current_user(self) -> None:
        dest = Destination.parse("skyrim:~/app")
        self.assertEqual(dest.host, "skyrim")
        self.assertIsNone(dest.user)
        self.assertEqual(dest.username, getpass.getuser())

    def test_parse_local_forms(self) -> None:
        self.assertEqual(Destination.parse("local"), Destination.local())
        self.assertEqual(Destination.parse("local:/tmp/build"), Destination.local("/tmp/build"))
        self.assertEqual(Destination.parse("/tmp/build"), Destination.local("/tmp/build"))

    def test_parse_rejects_empty(self) -> None:
        with self.assertRaises(ValueError):
            Destination.parse("")

    def test_string_round_trip(self) -> None:
        dest = Destination.remote("dovahkiin", "skyrim", "/srv/app")
        self.assertEqual(str(dest), "dovahkiin@skyrim:/srv/app")
        self.assertEqual(Destination.parse(str(dest)), dest)
        self.assertEqual(str(Destination.local("/tmp")), "/tmp")

    def test_destination_is_immutable(self) -> None:
        dest = Destination.local()
        with self.assertRaises(AttributeError):
            dest.path = "/elsewhere"  # type: ignore[misc]

    def test_resolve_maps_kinds_to_deployment_locations(self) -> None:
        build_at = Destination.local("/tmp/build")
        publish_to = Destination.remote("deploy", "prod-1", "/srv/app")
        deployment = Deployment(name="app", vsn="0.1.0", build_at=build_at, publish_to=publish_to)

        self.assertEqual(resolve("fetch", deployment), build_at)
        self.assertEqual(resolve("build", deployment), build_at)
        self.assertEqual(resolve("publish", deployment), publish_to)
        with self.assertRaises(ValueError):
            resolve("custom", deployment)


if __name__ == "__main__":
    unittest.main()
