"""
Unit tests for the rsyslog::default recipe.

Each node scenario is derived and planned, then the plan is checked the
way a kitchen run would check the converged system.
"""

import dataclasses

import pytest

from cookplan.core import (
    ConfigurationError,
    PolicyEngine,
    UnknownPlatformError,
    derive,
    plan,
    resolve,
)
from cookplan.core.errors import UnknownRecipeError
from cookplan.core.resource import NotifyAction, Timing
from cookplan.cookbooks.rsyslog.attributes import Protocol
from cookplan.resources import Directory, Execute, Package, Service, Template


def node(name, version, family=None, **rsyslog):
    platform = {"name": name, "version": version}
    if family:
        platform["family"] = family
    raw = {"platform": platform}
    if rsyslog:
        raw["rsyslog"] = rsyslog
    return resolve(raw)


def plan_for(snapshot, run_list=("rsyslog::default",)):
    return plan(derive(snapshot, run_list))


class TestUbuntu:
    """Tests for a stock Ubuntu 12.04 node."""

    def setup_method(self):
        self.plan = plan_for(node("ubuntu", "12.04", "debian"))

    def test_resources(self):
        """Test the resources and their order."""
        assert self.plan.ids == (
            "pkg:rsyslog",
            "directory:/etc/rsyslog.d",
            "directory:/var/spool/rsyslog",
            "template:/etc/rsyslog.conf",
            "template:/etc/rsyslog.d/50-default.conf",
            "svc:rsyslog",
        )

    def test_directories(self):
        """Test directory ownership and permissions."""
        for path in ("/etc/rsyslog.d", "/var/spool/rsyslog"):
            directory = self.plan.get(f"directory:{path}")
            assert isinstance(directory, Directory)
            assert (directory.owner, directory.group, directory.mode) == ("root", "root", 0o755)

    def test_main_config(self):
        """Test the rendered rsyslog.conf."""
        conf = self.plan.get("template:/etc/rsyslog.conf")

        assert isinstance(conf, Template)
        assert (conf.owner, conf.group, conf.mode) == ("root", "root", 0o644)
        assert conf.includes("$IncludeConfig /etc/rsyslog.d/*.conf")
        assert conf.includes("$WorkDirectory /var/spool/rsyslog")
        assert conf.matches(r"^\$ModLoad imuxsock$")
        assert conf.matches(r"^\$ModLoad imklog$")
        assert conf.matches(r"^\$PrivDropToUser syslog$")
        assert conf.matches(r"^\$PrivDropToGroup adm$")
        assert conf.matches(r"^\$MaxMessageSize 2k$")
        assert conf.includes("$ActionFileDefaultTemplate RSYSLOG_TraditionalFileFormat")

    def test_rules(self):
        """Test the rendered default rules."""
        rules = self.plan.get("template:/etc/rsyslog.d/50-default.conf")

        assert rules.includes("mail.*    -/var/log/mail.log")
        assert rules.includes("*.emerg    *")

    def test_service(self):
        """Test that rsyslog is enabled and started."""
        service = self.plan.get("svc:rsyslog")

        assert isinstance(service, Service)
        assert service.actions == ("enable", "start")

    def test_notifications(self):
        """Test that both templates restart rsyslog, delayed."""
        edges = self.plan.notifications_to("svc:rsyslog")

        assert [e.source for e in edges] == [
            "template:/etc/rsyslog.conf",
            "template:/etc/rsyslog.d/50-default.conf",
        ]
        assert all(e.action == NotifyAction.RESTART for e in edges)
        assert all(e.timing == Timing.DELAYED for e in edges)

    def test_stages(self):
        """Test that the service is handled after everything else."""
        assert self.plan.stages() == (
            (
                "pkg:rsyslog",
                "directory:/etc/rsyslog.d",
                "directory:/var/spool/rsyslog",
                "template:/etc/rsyslog.conf",
                "template:/etc/rsyslog.d/50-default.conf",
            ),
            ("svc:rsyslog",),
        )

    def test_no_optional_packages(self):
        """Test that relp and gnutls are not installed by default."""
        assert "pkg:rsyslog-relp" not in self.plan
        assert "pkg:rsyslog-gnutls" not in self.plan


class TestOptionalPackages:
    """Tests for relp and TLS packages."""

    def test_relp(self):
        """Test that use_relp adds exactly one relp package."""
        intents = derive(node("ubuntu", "12.04", use_relp=True)).intents
        ids = [i.id for i in intents]

        assert ids.count("pkg:rsyslog-relp") == 1
        assert ids.index("pkg:rsyslog") < ids.index("pkg:rsyslog-relp")

    def test_tls_with_ca(self):
        """Test that TLS with a CA file installs gnutls."""
        execution_plan = plan_for(node("ubuntu", "12.04", enable_tls=True, tls_ca_file="/etc/ssl/ca.pem"))

        assert isinstance(execution_plan.get("pkg:rsyslog-gnutls"), Package)

    def test_tls_without_ca(self):
        """Test that TLS without a CA file does not install gnutls."""
        execution_plan = plan_for(node("ubuntu", "12.04", enable_tls=True))
        over_udp = plan_for(node("ubuntu", "12.04", enable_tls=True, protocol="udp"))

        assert "pkg:rsyslog-gnutls" not in execution_plan
        assert "pkg:rsyslog-gnutls" not in over_udp

    def test_tls_over_udp_on_derive(self):
        """Test that derivation rejects TLS over UDP even on a hand-built snapshot."""
        snapshot = node("ubuntu", "12.04")
        bad = dataclasses.replace(
            snapshot,
            rsyslog=dataclasses.replace(
                snapshot.rsyslog, enable_tls=True, tls_ca_file="/etc/ssl/ca.pem", protocol=Protocol.UDP,
            ),
        )

        with pytest.raises(ConfigurationError):
            derive(bad)


class TestTemplateAttributes:
    """Tests for attributes that only change rendered content."""

    def test_no_imklog(self):
        """Test that enable_imklog=false drops the kernel log module."""
        conf = plan_for(node("ubuntu", "12.04", enable_imklog=False)).get("template:/etc/rsyslog.conf")

        assert conf.matches(r"^\$ModLoad imuxsock$")
        assert not conf.includes("imklog")

    def test_rate_limits(self):
        """Test rate limiting directives."""
        conf = plan_for(node("ubuntu", "12.04", rate_limit_interval=5, rate_limit_burst=200)).get(
            "template:/etc/rsyslog.conf")

        assert conf.matches(r"^\$SystemLogRateLimitInterval 5$")
        assert conf.matches(r"^\$SystemLogRateLimitBurst 200$")

    def test_high_precision_timestamps(self):
        """Test that high precision timestamps drop the traditional format."""
        conf = plan_for(node("ubuntu", "12.04", high_precision_timestamps=True)).get(
            "template:/etc/rsyslog.conf")

        assert not conf.includes("$ActionFileDefaultTemplate")

    def test_custom_file_template(self):
        """Test an explicit default file template."""
        conf = plan_for(node("ubuntu", "12.04", default_file_template="RSYSLOG_FileFormat")).get(
            "template:/etc/rsyslog.conf")

        assert conf.matches(r"^\$ActionFileDefaultTemplate RSYSLOG_FileFormat$")

    def test_root_nodes_do_not_drop_privileges(self):
        """Test that nodes without privilege separation keep root."""
        conf = plan_for(node("debian", "7.1")).get("template:/etc/rsyslog.conf")

        assert not conf.includes("$PrivDropToUser")
        assert conf.matches(r"^\$FileOwner root$")


class TestRhel:
    """Tests for Red Hat family nodes."""

    def test_rhel5_stops_sysklogd(self):
        """Test that RHEL 5 stops and disables the stock syslog."""
        execution_plan = plan_for(node("redhat", "5.8"))
        legacy = execution_plan.get("svc:syslog")

        assert legacy.actions == ("stop", "disable")
        assert execution_plan.ids.index("svc:syslog") < execution_plan.ids.index("svc:rsyslog")

    def test_rhel6_has_no_legacy_service(self):
        """Test that RHEL 6 ships rsyslog only."""
        execution_plan = plan_for(node("centos", "6.3"))

        assert "svc:syslog" not in execution_plan
        rules = execution_plan.get("template:/etc/rsyslog.d/50-default.conf")
        assert rules.includes("mail.*    -/var/log/maillog")


class TestSmartOS:
    """Tests for a SmartOS node."""

    def setup_method(self):
        self.plan = plan_for(node("smartos", "joyent_20130111T180733Z"))

    def test_paths(self):
        """Test the pkgsrc layout."""
        assert "template:/opt/local/etc/rsyslog.conf" in self.plan
        assert "directory:/opt/local/etc/rsyslog.d" in self.plan
        assert "template:/opt/local/etc/rsyslog.d/50-default.conf" in self.plan

    def test_modules(self):
        """Test illumos input modules."""
        conf = self.plan.get("template:/opt/local/etc/rsyslog.conf")

        for module in ("immark", "imsolaris", "imtcp", "imudp"):
            assert conf.matches(rf"^\$ModLoad {module}$")
        assert not conf.includes("imklog")

    def test_system_log_disabled(self):
        """Test that the stock system-log service is disabled."""
        assert self.plan.get("svc:system-log").actions == ("disable",)

    def test_rules(self):
        """Test illumos rules."""
        rules = self.plan.get("template:/opt/local/etc/rsyslog.d/50-default.conf")

        assert rules.matches(r"^\*\.err;kern\.debug;daemon\.notice;mail\.crit\s+/var/adm/messages$")


class TestOmniOS:
    """Tests for an OmniOS node, which imports an SMF manifest."""

    MANIFEST = "template:/var/svc/manifest/system/rsyslogd.xml"
    IMPORTER = "exec:import rsyslog manifest"
    SERVICE = "svc:system/rsyslogd"

    def setup_method(self):
        self.plan = plan_for(node("omnios", "r151006"))

    def test_order(self):
        """Test the resource order."""
        assert self.plan.ids == (
            "pkg:rsyslog",
            "directory:/etc/rsyslog.d",
            "directory:/var/spool/rsyslog",
            "template:/etc/rsyslog.conf",
            "template:/etc/rsyslog.d/50-default.conf",
            "svc:system-log",
            self.MANIFEST,
            self.IMPORTER,
            self.SERVICE,
        )

    def test_manifest_import(self):
        """Test that the importer runs only when notified."""
        importer = self.plan.get(self.IMPORTER)
        manifest = self.plan.get(self.MANIFEST)

        assert isinstance(importer, Execute)
        assert importer.notified_only
        assert importer.command == "svccfg import /var/svc/manifest/system/rsyslogd.xml"
        assert manifest.includes("system/rsyslogd")

    def test_dependencies(self):
        """Test the reduced dependency graph."""
        assert self.plan.dependencies[self.SERVICE] == frozenset({
            "template:/etc/rsyslog.conf",
            "template:/etc/rsyslog.d/50-default.conf",
            self.IMPORTER,
        })
        assert self.plan.dependencies[self.IMPORTER] == frozenset({self.MANIFEST})
        assert len(self.plan.stages()) == 3

    def test_manifest_change(self):
        """Test the notification chain of a manifest change."""
        fired = self.plan.triggered([self.MANIFEST])

        assert [(e.source, e.action, e.target, e.timing) for e in fired] == [
            (self.MANIFEST, NotifyAction.RUN, self.IMPORTER, Timing.IMMEDIATELY),
            (self.IMPORTER, NotifyAction.RESTART, self.SERVICE, Timing.DELAYED),
        ]


class TestUnknownPlatform:
    """Tests for families without an rsyslog profile."""

    def test_derive_fails(self):
        """Test that deriving rsyslog for an unknown family fails."""
        snapshot = node("plan9", "4")

        with pytest.raises(UnknownPlatformError, match="plan9"):
            derive(snapshot)

    def test_error_names_cookbook(self):
        """Test the error fields."""
        with pytest.raises(UnknownPlatformError) as exc_info:
            derive(node("plan9", "4"))

        assert exc_info.value.family == "plan9"
        assert exc_info.value.cookbook == "rsyslog"


class TestPolicyEngine:
    """Tests for run list handling."""

    def test_determinism(self):
        """Test that derivation is a pure function of the snapshot."""
        snapshot = node("omnios", "r151006")

        assert derive(snapshot) == derive(snapshot)
        assert plan(derive(snapshot)) == plan(derive(snapshot))

    def test_unknown_recipe(self):
        """Test that unknown recipes fail before anything runs."""
        calls = []
        engine = PolicyEngine({"demo::default": lambda ctx: calls.append(ctx)})

        with pytest.raises(UnknownRecipeError):
            engine.derive(node("ubuntu", "12.04"), ["demo::default", "demo::missing"])
        assert calls == []

    def test_include_once(self):
        """Test that a recipe included twice runs once."""
        calls = []

        def first(ctx):
            calls.append("first")
            ctx.add(Package("curl"))

        def second(ctx):
            ctx.include_recipe("demo::first")
            ctx.include_recipe("demo::first")

        engine = PolicyEngine({"demo::first": first, "demo::second": second})
        derivation = engine.derive(node("ubuntu", "12.04"), ["demo::second", "demo::first"])

        assert calls == ["first"]
        assert [i.id for i in derivation.intents] == ["pkg:curl"]

    def test_duplicate_edges_collapsed(self):
        """Test that declaring the same notification twice keeps one edge."""
        def recipe(ctx):
            conf = ctx.add(Template("/etc/demo.conf", source="demo.conf.j2", content=""))
            ctx.add(Service("demo"))
            ctx.notify(conf, "restart", "svc:demo")
            ctx.notify(conf, NotifyAction.RESTART, "svc:demo")

        derivation = PolicyEngine({"demo::default": recipe}).derive(node("ubuntu", "12.04"), ["demo::default"])

        assert len(derivation.notifications) == 1
