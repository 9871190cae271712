#!/usr/bin/env python
from typing import Any, Dict, Tuple
import sys

import click

import modules.attestation as attestation
import modules.config.blueprint_config as blueprint_config
import modules.envvars as envvars
import modules.fileparser as fileparser
import modules.helpers as helpers
import modules.preflight as preflight
import modules.templates as templates
import modules.tfwrapper as tfwrapper
from modules.exceptions import BlueprintError, TemplateRenderError

__version__ = "1.0.0"
PROMOTION_ORDER = " > ".join(blueprint_config.ENVIRONMENTS)


def my_excepthook(exc_type: type, exc_value: BaseException, exc_traceback: Any) -> None:
    """Print unhandled errors without a traceback (use --debug to see one)."""
    print(f"Unhandled error: {exc_type.__name__}: {exc_value}")


def _show_banner(title: str) -> None:
    click.echo(
        click.style(f"\nSecure CI/CD Blueprint :: {title}\n", fg="cyan", bold=True)
    )


def _setup(debug: bool) -> None:
    helpers.configure_logging(debug)
    if not debug:
        sys.excepthook = my_excepthook


def _fail(error: BlueprintError) -> None:
    """Report a blueprint error and exit non-zero."""
    helpers.echo_fail(f"ERROR: {error}")
    sys.exit(1)


def verify_preconditions(varsfile: str) -> Dict[str, str]:
    """Load customer variables and run every check that must pass before Terraform.

    Args:
        varsfile: Path to the shell variables file (skipped when absent)

    Returns:
        Resolved blueprint settings (project, state bucket, prefix, region)

    Raises:
        BlueprintError: On the first failed check
    """
    helpers.echo_step(f"Loading customer variables from {varsfile}")
    envvars.load_vars_file(varsfile)

    helpers.echo_step("Verifying Required Environment Variables")
    settings = envvars.blueprint_settings()
    helpers.echo_ok("Required environment variables are set")

    helpers.echo_step("Verifying Required CLI tools")
    for exe, location in preflight.verify_cli_tools(
        blueprint_config.REQUIRED_CLI_TOOLS
    ).items():
        click.echo(f"  {exe} command detected: {location}")
    version = preflight.check_terraform_version()
    helpers.echo_ok(f"terraform version detected: {version}")

    helpers.echo_step("Verifying access to Terraform Remote State Bucket")
    preflight.verify_state_bucket(settings["state_bucket"])
    helpers.echo_ok("Access to Terraform State Bucket succeeded")
    return settings


def _tf_variables(settings: Dict[str, str]) -> Dict[str, str]:
    return {"project_id": settings["project_id"], "region": settings["region"]}


def _common_options(func):
    """Options shared by provision and cleanup."""
    func = click.option(
        "--debug", is_flag=True, default=False, help="Dump exception tracebacks"
    )(func)
    func = click.option(
        "--tfdir",
        default=blueprint_config.DEFAULT_TF_DIR,
        show_default=True,
        help="Directory holding the Terraform blueprint",
    )(func)
    func = click.option(
        "--varsfile",
        default=blueprint_config.DEFAULT_VARS_FILE,
        show_default=True,
        help="Shell file of customer variables (export KEY=VALUE)",
    )(func)
    func = click.option(
        "-q",
        "--quiet",
        is_flag=True,
        default=False,
        help="Do not prompt; pass -auto-approve to terraform",
    )(func)
    return func


@click.version_option(version=__version__, prog_name="securecicd")
@click.group()
def cli() -> None:
    """Provision and tear down a CI/CD pipeline secured by Binary Authorization.

    For help with a specific command type:
    securecicd [COMMAND] --help
    """
    pass


@cli.command()
@_common_options
def provision(quiet: bool, varsfile: str, tfdir: str, debug: bool) -> None:
    """Build the clusters, attestation authority and service account."""
    _setup(debug)
    _show_banner("provision")
    try:
        settings = verify_preconditions(varsfile)
        helpers.echo_step("Initialising Terraform")
        tfwrapper.tf_init(tfdir, settings["state_bucket"], settings["state_prefix"])
        helpers.echo_step("Building infrastructure")
        tfwrapper.tf_apply(tfdir, _tf_variables(settings), auto_approve=quiet)
        helpers.print_outputs(tfwrapper.tf_output(tfdir))
    except BlueprintError as e:
        _fail(e)
    helpers.echo_ok("Provisioning complete")


@cli.command()
@_common_options
def cleanup(quiet: bool, varsfile: str, tfdir: str, debug: bool) -> None:
    """Remove all resources built with this blueprint."""
    _setup(debug)
    _show_banner("cleanup")
    try:
        settings = verify_preconditions(varsfile)
        helpers.echo_step("Initialising Terraform")
        tfwrapper.tf_init(tfdir, settings["state_bucket"], settings["state_prefix"])
        helpers.echo_step("Removing infrastructure")
        tfwrapper.tf_destroy(tfdir, _tf_variables(settings), auto_approve=quiet)
    except BlueprintError as e:
        _fail(e)
    helpers.echo_ok("Cleanup complete")


@cli.command(name="preflight")
@click.option(
    "--varsfile",
    default=blueprint_config.DEFAULT_VARS_FILE,
    show_default=True,
    help="Shell file of customer variables (export KEY=VALUE)",
)
@click.option("--debug", is_flag=True, default=False, help="Dump exception tracebacks")
def preflight_check(varsfile: str, debug: bool) -> None:
    """Run the precondition checks only."""
    _setup(debug)
    _show_banner("preflight")
    try:
        settings = verify_preconditions(varsfile)
    except BlueprintError as e:
        _fail(e)
    click.echo(f"\n  project: {settings['project_id']}")
    click.echo(f"  region: {settings['region']}")
    click.echo(f"  state: gs://{settings['state_bucket']}/{settings['state_prefix']}")
    helpers.echo_ok("All preconditions met")


@cli.command()
@click.option(
    "--tfdir",
    default=blueprint_config.DEFAULT_TF_DIR,
    show_default=True,
    help="Directory holding the Terraform blueprint",
)
@click.option("--debug", is_flag=True, default=False, help="Dump exception tracebacks")
def inventory(tfdir: str, debug: bool) -> None:
    """List the resources the blueprint declares, grouped by purpose."""
    _setup(debug)
    try:
        tfdata = fileparser.read_tfsource(tfdir)
    except BlueprintError as e:
        _fail(e)
    for filename in tfdata["files"]:
        click.echo(f"  Parsed {filename}")
    for category, addresses in tfdata["categories"].items():
        if not addresses:
            continue
        helpers.echo_heading(f"{category} ({len(addresses)})")
        for address in addresses:
            click.echo(f"  {address}")
    if tfdata["tfvars"]:
        helpers.echo_heading("terraform.tfvars")
        for name, value in tfdata["tfvars"].items():
            click.echo(f"  {name} = {value}")
    click.echo(
        f"\n{len(tfdata['resources'])} resource(s), "
        f"{len(tfdata['variables'])} variable(s), "
        f"{len(tfdata['outputs'])} output(s)"
    )


@cli.command()
@click.argument("template", type=click.Path(dir_okay=False))
@click.option(
    "--set",
    "overrides",
    multiple=True,
    default=[],
    help="KEY=VALUE placeholder value (repeatable, overrides the environment)",
)
@click.option(
    "--varsfile",
    default=blueprint_config.DEFAULT_VARS_FILE,
    show_default=True,
    help="Shell file of customer variables (export KEY=VALUE)",
)
@click.option("--output", "-o", default="", help="Write to this file instead of stdout")
@click.option("--debug", is_flag=True, default=False, help="Dump exception tracebacks")
def render(
    template: str, overrides: Tuple[str, ...], varsfile: str, output: str, debug: bool
) -> None:
    """Render a pipeline or manifest TEMPLATE with ${VAR} substitution."""
    _setup(debug)
    try:
        envvars.load_vars_file(varsfile)
        rendered = templates.render_template(
            template,
            templates.parse_overrides(list(overrides)),
            defaults={"GOOGLE_REGION": blueprint_config.DEFAULT_REGION},
        )
    except BlueprintError as e:
        _fail(e)
    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            _fail(
                TemplateRenderError(
                    f"Cannot write {output}: {e.strerror}", context={"output": output}
                )
            )
        helpers.echo_ok(f"Rendered {template} to {output}")
    else:
        click.echo(rendered, nl=False)


@cli.command()
@click.option(
    "--image", required=True, help="Image to approve, as REPOSITORY@sha256:<digest>"
)
@click.option(
    "--stage",
    required=True,
    type=click.Choice(sorted(blueprint_config.STAGE_ATTESTORS), case_sensitive=False),
    help=f"Environment the image is being promoted into ({PROMOTION_ORDER})",
)
@click.option(
    "--keyring",
    default=blueprint_config.KMS_KEYRING,
    show_default=True,
    help="KMS keyring holding the attestor keys",
)
@click.option(
    "--location",
    default=blueprint_config.KMS_LOCATION,
    show_default=True,
    help="KMS keyring location",
)
@click.option(
    "--key-version",
    default=blueprint_config.KMS_KEY_VERSION,
    show_default=True,
    help="Version of the attestor signing key",
)
@click.option(
    "--varsfile",
    default=blueprint_config.DEFAULT_VARS_FILE,
    show_default=True,
    help="Shell file of customer variables (export KEY=VALUE)",
)
@click.option("--yes", is_flag=True, default=False, help="Skip the approval prompt")
@click.option("--debug", is_flag=True, default=False, help="Dump exception tracebacks")
def attest(
    image: str,
    stage: str,
    keyring: str,
    location: str,
    key_version: str,
    varsfile: str,
    yes: bool,
    debug: bool,
) -> None:
    """Approve an image for promotion by signing an attestation."""
    _setup(debug)
    _show_banner(f"approve for {stage}")
    try:
        envvars.load_vars_file(varsfile)
        project = envvars.verify_env_vars(["GOOGLE_PROJECT_ID"])["GOOGLE_PROJECT_ID"]
        image = attestation.validate_image_digest(image)
        attestor = attestation.attestor_for_stage(stage)
    except BlueprintError as e:
        _fail(e)
    click.echo(f"  image: {image}")
    click.echo(f"  attestor: projects/{project}/attestors/{attestor}")
    if not yes:
        click.confirm(f"Approve this image for {stage}?", abort=True)
    try:
        output = attestation.sign_and_create(
            image, stage, project, keyring, location, key_version
        )
    except BlueprintError as e:
        _fail(e)
    if output.strip():
        click.echo(output)
    helpers.echo_ok(f"Attestation created; the image may now be deployed to {stage}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
