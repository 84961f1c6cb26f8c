import unittest

from arch_provisioner.config import load_config
from arch_provisioner.pipeline import StepContext
from arch_provisioner.steps import (
    ApplicationsStep,
    AurHelperStep,
    BasePackagesStep,
    ContainersStep,
    DisableBalooStep,
    DisableIPv6Step,
    DisplayManagerStep,
    EnableMultilibStep,
    GpuDriversStep,
    NodeRuntimeStep,
    ShellStep,
)

from .fake_host import FakeHost
from .test_hwdetect import AMD_LSPCI, NVIDIA_LSPCI

SYSCTL = "/etc/sysctl.d/99-sysctl.conf"


def make_ctx(host, variant="auto"):
    return StepContext(host=host, cfg=load_config(variant=variant), state={})


class TestDisableIPv6(unittest.TestCase):
    def test_appends_settings_once(self):
        host = FakeHost(files={SYSCTL: "vm.swappiness=10\n"}, wireless=["wlan0"])
        result = DisableIPv6Step().run(make_ctx(host))

        self.assertTrue(result.changed)
        text = host.files[SYSCTL]
        self.assertEqual(text.count("net.ipv6.conf.all.disable_ipv6=1"), 1)
        self.assertIn("net.ipv6.conf.wlan0.disable_ipv6=1\n", text)
        self.assertTrue(text.startswith("vm.swappiness=10\n"))
        self.assertEqual(len(host.mutations("reload_sysctl")), 1)

    def test_file_already_configured_is_untouched(self):
        original = "net.ipv6.conf.all.disable_ipv6=1\nnet.ipv6.conf.default.disable_ipv6=1\n"
        host = FakeHost(files={SYSCTL: original}, wireless=["wlan0"])
        result = DisableIPv6Step().run(make_ctx(host))

        self.assertFalse(result.changed)
        self.assertEqual(host.files[SYSCTL], original)
        self.assertEqual(host.calls, [])

    def test_explicit_enable_is_overridden(self):
        original = "net.ipv6.conf.all.disable_ipv6=0\n"
        host = FakeHost(files={SYSCTL: original})
        result = DisableIPv6Step().run(make_ctx(host))

        self.assertTrue(result.changed)
        self.assertEqual(
            host.files[SYSCTL],
            original + "net.ipv6.conf.all.disable_ipv6=1\nnet.ipv6.conf.default.disable_ipv6=1\n",
        )
        self.assertEqual(len(host.mutations("reload_sysctl")), 1)

        host.calls.clear()
        self.assertFalse(DisableIPv6Step().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])

    def test_missing_file_is_created_by_append(self):
        host = FakeHost()
        ctx = make_ctx(host)
        DisableIPv6Step().run(ctx)
        self.assertEqual(
            host.files[SYSCTL],
            "net.ipv6.conf.all.disable_ipv6=1\nnet.ipv6.conf.default.disable_ipv6=1\n",
        )
        self.assertEqual(ctx.state["hardware"]["wireless_interfaces"], [])


class TestEnableMultilib(unittest.TestCase):
    def test_enables_and_refreshes(self):
        host = FakeHost()
        result = EnableMultilibStep().run(make_ctx(host))
        self.assertTrue(result.changed)
        self.assertIn("\n[multilib]\n", host.files["/etc/pacman.conf"])
        self.assertEqual([c[0] for c in host.calls], ["write_text", "pacman_upgrade"])

    def test_noop_when_enabled(self):
        host = FakeHost(files={"/etc/pacman.conf": "[multilib]\nInclude = /etc/pacman.d/mirrorlist\n"})
        self.assertFalse(EnableMultilibStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])

    def test_missing_pacman_conf_fails(self):
        host = FakeHost(files={"/etc/pacman.conf": ""})
        with self.assertRaises(RuntimeError):
            EnableMultilibStep().run(make_ctx(host))


class TestBasePackages(unittest.TestCase):
    def test_installs_only_missing_with_upgrade(self):
        host = FakeHost(packages=["git", "vim"])
        BasePackagesStep().run(make_ctx(host))
        self.assertEqual(
            host.mutations("pacman_install"),
            [("pacman_install", ("base-devel", "iwd", "dhcpcd", "plasma"), True)],
        )

    def test_noop_when_all_installed(self):
        host = FakeHost(packages=["git", "vim", "base-devel", "iwd", "dhcpcd", "plasma"])
        self.assertFalse(BasePackagesStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])


class TestAurHelper(unittest.TestCase):
    def test_builds_when_absent(self):
        host = FakeHost()
        AurHelperStep().run(make_ctx(host))
        self.assertEqual(
            host.mutations("build_from_source"),
            [("build_from_source", "yay", "https://aur.archlinux.org/yay.git")],
        )
        self.assertTrue(host.command_exists("yay"))

    def test_present(self):
        host = FakeHost(commands=["yay"])
        self.assertFalse(AurHelperStep().run(make_ctx(host)).changed)


class TestGpuDrivers(unittest.TestCase):
    def test_no_gpu_is_skipped(self):
        host = FakeHost(lspci="00:1f.3 Audio device: Intel Corporation Device\n")
        ctx = make_ctx(host)
        result = GpuDriversStep().run(ctx)
        self.assertFalse(result.changed)
        self.assertEqual(host.calls, [])
        self.assertEqual(ctx.state["execution"]["decisions"]["gpu_driver"]["vendor"], "none")

    def test_nvidia_detected(self):
        host = FakeHost(lspci=NVIDIA_LSPCI)
        self.assertTrue(GpuDriversStep().run(make_ctx(host)).changed)
        self.assertEqual(
            host.mutations("pacman_install"),
            [("pacman_install", ("nvidia", "lib32-nvidia-utils"), False)],
        )

    def test_amd_detected_without_mesa_git(self):
        host = FakeHost(lspci=AMD_LSPCI)
        GpuDriversStep().run(make_ctx(host))
        self.assertEqual(
            host.mutations("pacman_install"),
            [("pacman_install", ("vulkan-radeon", "lib32-vulkan-radeon"), False)],
        )
        self.assertEqual(host.mutations("build_from_source"), [])

    def test_amd_variant_installs_unconditionally(self):
        host = FakeHost(lspci="")
        GpuDriversStep().run(make_ctx(host, variant="amd"))
        self.assertEqual(len(host.mutations("pacman_install")), 1)
        self.assertEqual(host.mutations("build_from_source")[0][1], "mesa-git")

    def test_installed_drivers_are_not_requested_again(self):
        host = FakeHost(lspci=NVIDIA_LSPCI, packages=["nvidia", "lib32-nvidia-utils"])
        self.assertFalse(GpuDriversStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])


class TestApplications(unittest.TestCase):
    def test_splits_repo_and_aur(self):
        host = FakeHost(packages=["git", "steam"])
        ApplicationsStep().run(make_ctx(host, variant="amd"))
        self.assertEqual(
            host.mutations("pacman_install"),
            [("pacman_install", ("chromium", "gamemode", "mangohud", "wine-staging"), False)],
        )
        self.assertEqual(
            host.mutations("aur_install"),
            [("aur_install", ("goverlay", "brave-bin"), "yay")],
        )


class TestDisplayManager(unittest.TestCase):
    def test_installs_enables_starts(self):
        host = FakeHost()
        DisplayManagerStep().run(make_ctx(host))
        self.assertEqual(
            [c[0] for c in host.calls],
            ["aur_install", "enable_service", "start_service"],
        )

    def test_already_enabled(self):
        host = FakeHost(services=["ly"])
        self.assertFalse(DisplayManagerStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])


class TestDisableBaloo(unittest.TestCase):
    def test_not_kde(self):
        host = FakeHost(commands=["balooctl6"], env={"XDG_CURRENT_DESKTOP": "GNOME"})
        self.assertFalse(DisableBalooStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])

    def test_kde_suspend_by_default(self):
        host = FakeHost(commands=["balooctl6"], env={"XDG_CURRENT_DESKTOP": "KDE"})
        self.assertTrue(DisableBalooStep().run(make_ctx(host)).changed)
        self.assertEqual(
            [c[1] for c in host.mutations("run")],
            [("balooctl6", "suspend"), ("balooctl6", "disable"), ("balooctl6", "purge")],
        )

    def test_plasmashell_process_and_stop_verb(self):
        host = FakeHost(commands=["balooctl"], processes=["plasmashell"])
        DisableBalooStep().run(make_ctx(host, variant="amd"))
        self.assertEqual(host.mutations("run")[0], ("run", ("balooctl", "stop")))

    def test_baloo_missing(self):
        host = FakeHost(env={"XDG_CURRENT_DESKTOP": "KDE"})
        self.assertFalse(DisableBalooStep().run(make_ctx(host)).changed)

    def test_already_disabled(self):
        host = FakeHost(
            commands=["balooctl6"],
            env={"XDG_CURRENT_DESKTOP": "KDE"},
            baloo_status="Baloo is currently disabled. To enable, please run balooctl6 enable",
        )
        self.assertFalse(DisableBalooStep().run(make_ctx(host)).changed)
        self.assertEqual(host.calls, [])


class TestShell(unittest.TestCase):
    def test_fresh_install(self):
        host = FakeHost()
        ShellStep().run(make_ctx(host))
        self.assertEqual(host.mutations("pacman_install"), [("pacman_install", ("zsh",), False)])
        url, interpreter, args = host.mutations("run_remote_script")[0][1:]
        self.assertIn("ohmyzsh", url)
        self.assertEqual((interpreter, args), ("sh", ("--unattended",)))
        self.assertEqual(host.mutations("set_login_shell"), [("set_login_shell", "alice", "/usr/bin/zsh")])

    def test_zsh_and_ohmyzsh_present(self):
        host = FakeHost(commands=["zsh"], dirs=["/home/alice/.oh-my-zsh"], shell="/usr/bin/zsh")
        result = ShellStep().run(make_ctx(host))
        self.assertFalse(result.changed)
        self.assertEqual(host.calls, [])

    def test_present_but_login_shell_differs(self):
        host = FakeHost(commands=["zsh"], dirs=["/home/alice/.oh-my-zsh"])
        ShellStep().run(make_ctx(host))
        self.assertEqual([c[0] for c in host.calls], ["set_login_shell"])


class TestContainers(unittest.TestCase):
    def test_fresh_install(self):
        host = FakeHost()
        ContainersStep().run(make_ctx(host))
        self.assertEqual(
            [c[0] for c in host.calls],
            [
                "pacman_install",
                "ensure_group",
                "add_user_to_group",
                "enable_service",
                "start_service",
                "pacman_install",
            ],
        )
        self.assertIn("alice", host.groups["docker"])

    def test_docker_present_user_missing_from_group(self):
        host = FakeHost(
            commands=["docker", "docker-compose"],
            services=["docker.service"],
            groups={"docker": set()},
        )
        ContainersStep().run(make_ctx(host))
        self.assertEqual(host.calls, [("add_user_to_group", "alice", "docker")])


class TestNodeRuntime(unittest.TestCase):
    def test_yarn_only_in_default_variant(self):
        host = FakeHost()
        NodeRuntimeStep().run(make_ctx(host))
        self.assertEqual(host.mutations("pacman_install")[0][1], ("nodejs", "npm", "yarn"))

        host = FakeHost()
        NodeRuntimeStep().run(make_ctx(host, variant="amd"))
        self.assertEqual(host.mutations("pacman_install")[0][1], ("nodejs", "npm"))

    def test_nvm_installer_pinned(self):
        host = FakeHost(commands=["node"])
        NodeRuntimeStep().run(make_ctx(host))
        url, interpreter, _ = host.mutations("run_remote_script")[0][1:]
        self.assertEqual(url, "https://raw.githubusercontent.com/nvm-sh/nvm/v0.39.5/install.sh")
        self.assertEqual(interpreter, "bash")

    def test_everything_present(self):
        host = FakeHost(commands=["node"], dirs=["/home/alice/.nvm"])
        self.assertFalse(NodeRuntimeStep().run(make_ctx(host)).changed)
