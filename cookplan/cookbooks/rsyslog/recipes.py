"""
rsyslog recipes.
"""

from cookplan.core.templates import render_template
from cookplan.cookbooks.rsyslog.attributes import check_tls
from cookplan.cookbooks.rsyslog.platforms import profile_for
from cookplan.resources.exec import Execute
from cookplan.resources.file import Directory, Template
from cookplan.resources.pkg import Package
from cookplan.resources.service import Service


def default(ctx) -> None:
    """Install rsyslog, render its configuration and keep the service running."""
    node = ctx.node
    rsyslog = node.rsyslog
    paths = node.paths
    platform = ctx.platform

    check_tls(rsyslog)

    ctx.add(Package("rsyslog"))
    if rsyslog.use_relp:
        ctx.add(Package("rsyslog-relp"))
    if rsyslog.tls_active:
        ctx.add(Package("rsyslog-gnutls"))

    profile = profile_for(platform.family)
    service_id = Service(rsyslog.service_name).id

    ctx.add(Directory(paths.config_dir, owner="root", group="root", mode=0o755))
    ctx.add(Directory(paths.spool_dir, owner="root", group="root", mode=0o755))

    # Main stub which includes everything in the rsyslog.d directory
    main_conf = ctx.add(Template(
        paths.main_config,
        source="rsyslog.conf.j2",
        content=render_template(
            "rsyslog",
            "rsyslog.conf.j2",
            rsyslog=rsyslog,
            paths=paths,
            platform=platform,
            modules=rsyslog.loaded_modules,
        ),
        owner="root",
        group="root",
        mode=0o644,
    ))
    ctx.notify(main_conf, "restart", service_id)

    rules = ctx.add(Template(
        paths.rules_config,
        source=profile.rules_template,
        content=render_template(
            "rsyslog",
            profile.rules_template,
            paths=paths,
            mail_log=profile.mail_log,
        ),
        owner="root",
        group="root",
        mode=0o644,
    ))
    ctx.notify(rules, "restart", service_id)

    # The stock syslog daemon has to be stopped before rsyslog can start
    legacy = profile.legacy_syslog
    if legacy is not None and legacy.applies_to(platform):
        ctx.add(Service(legacy.service, running=legacy.running, enabled=legacy.enabled))

    if profile.smf_manifest:
        manifest = ctx.add(Template(
            profile.smf_manifest,
            source="omnios-manifest.xml.j2",
            content=render_template(
                "rsyslog",
                "omnios-manifest.xml.j2",
                manifest=profile.smf_manifest,
                service_name=rsyslog.service_name,
                paths=paths,
            ),
            owner="root",
            group="root",
            mode=0o644,
        ))
        importer = ctx.add(Execute(
            "import rsyslog manifest",
            command=f"svccfg import {profile.smf_manifest}",
            notified_only=True,
        ))
        ctx.notify(manifest, "run", importer, timing="immediately")
        ctx.notify(importer, "restart", service_id)

    ctx.add(Service(rsyslog.service_name, running=True, enabled=True))
