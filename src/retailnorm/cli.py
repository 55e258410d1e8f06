from pathlib import Path
from typing import Annotated

import cyclopts
from loguru import logger

import retailnorm.errors as errors
import retailnorm.logging as log
import retailnorm.profiles as profiles
import retailnorm.schema as schema
import retailnorm.stores as stores

app = cyclopts.App(
    name="retailnorm", help="Normalize flat eCommerce transaction exports"
)

OutputOption = Annotated[
    str | None,
    cyclopts.Parameter(
        name=["--output", "-o"],
        help="Directory for the normalized tables. Defaults to the profile store path.",
    ),
]
ProfileOption = Annotated[
    str | None,
    cyclopts.Parameter(name="--profile", help="Profile name from retailnorm.yaml"),
]
ConfigOption = Annotated[
    str | None,
    cyclopts.Parameter(name="--config", help="Path to retailnorm.yaml"),
]


@app.meta.default
def launcher(
    *tokens: str,
    verbose: Annotated[
        bool, cyclopts.Parameter(name=["--verbose", "-v"], help="Debug logging")
    ] = False,
) -> None:
    """
    CLI entry point that configures logging and dispatches commands.

    Args:
        *tokens: Command tokens to execute
        verbose: Enable debug logging. Defaults to False.
    """
    log.setup_logging(verbose=verbose)
    app(tokens)


@app.command
def run(
    source: Annotated[
        str, cyclopts.Parameter(help="Transaction export (.csv or .parquet)")
    ],
    output: OutputOption = None,
    profile: ProfileOption = None,
    config: ConfigOption = None,
    force: Annotated[
        bool,
        cyclopts.Parameter(name=["--force", "-f"], help="Overwrite existing tables."),
    ] = False,
    no_preview: Annotated[
        bool,
        cyclopts.Parameter(name="--no-preview", help="Disable table preview output"),
    ] = False,
    preview_rows: Annotated[
        int,
        cyclopts.Parameter(
            name="--preview-rows",
            help="Number of preview rows to display. Defaults to 5.",
        ),
    ] = 5,
    encoding: Annotated[
        str | None,
        cyclopts.Parameter(
            name="--encoding",
            help="Text encoding of a csv export. Defaults to the profile setting.",
        ),
    ] = None,
):
    """
    Normalize a transaction export into customers, products, invoices
    and invoice lines.

    Args:
        source: Path to the flat transaction export.
        output: Output directory. Defaults to the profile's store path.
        profile: Profile name. Defaults to None (env var or config default).
        config: Path to retailnorm.yaml. Defaults to None.
        force: Overwrite existing tables. Defaults to False.
        no_preview: Disable table preview output. Defaults to False.
        preview_rows: Number of preview rows to display. Defaults to 5.
        encoding: Csv text encoding, e.g. latin-1. Defaults to None (profile
            source.encoding).

    Raises:
        SystemExit: If the export cannot be loaded or normalized
    """
    try:
        profile_config = _load_profile(profile, config)
        store = _resolve_store(profile_config, output)

        logger.debug(f"Loading transactions from {source}")
        source_df = schema.load_source(
            source, encoding=encoding or profile_config.source.encoding
        )
        tables = profile_config.create_normalizer().run(source_df)

        if not no_preview:
            for name, df in tables.tables().items():
                log.print_table_preview(name, df, max_rows=preview_rows)

        written = store.write_tables(tables, source=str(source), force=force)

    except (errors.RetailnormError, FileNotFoundError, ValueError) as e:
        log.print_error(str(e))
        raise SystemExit(1)

    if not written:
        log.print_warning(
            "Store already holds tables from a previous run. Use --force to overwrite."
        )
        return

    log.print_write_results(written)
    log.print_success(f"Wrote {len(written)} tables")


@app.command
def show(
    table: Annotated[
        str,
        cyclopts.Parameter(help="Table name: customers, products, invoices or invoice_lines"),
    ],
    output: OutputOption = None,
    profile: ProfileOption = None,
    config: ConfigOption = None,
    rows: Annotated[
        int, cyclopts.Parameter(name=["--rows", "-n"], help="Rows to display")
    ] = 10,
):
    """
    Preview a stored table.

    Args:
        table: Name of the table to display.
        output: Store directory. Defaults to the profile's store path.
        profile: Profile name. Defaults to None.
        config: Path to retailnorm.yaml. Defaults to None.
        rows: Number of rows to display. Defaults to 10.

    Raises:
        SystemExit: If the table does not exist
    """
    if table not in schema.TABLE_COLUMNS:
        log.print_error(
            f"Unknown table '{table}'. Choose from: {', '.join(schema.TABLE_COLUMNS)}"
        )
        raise SystemExit(1)

    try:
        store = _resolve_store(_load_profile(profile, config), output, must_exist=True)
        df = store.read(table)
    except (errors.RetailnormError, FileNotFoundError) as e:
        log.print_error(str(e))
        raise SystemExit(1)

    log.print_table_preview(table, df, max_rows=rows)


@app.command
def list_(
    output: OutputOption = None,
    profile: ProfileOption = None,
    config: ConfigOption = None,
):
    """
    Summarize the tables in the store from their metadata files.
    """
    try:
        store = _resolve_store(_load_profile(profile, config), output, must_exist=True)
    except (errors.RetailnormError, FileNotFoundError) as e:
        log.print_error(str(e))
        raise SystemExit(1)

    metadata_list = store.list_metadata()
    if not metadata_list:
        log.print_warning(f"No tables found in {store.path}. Run 'retailnorm run' first.")
        return

    log.print_store_summary(metadata_list)


def _load_profile(profile: str | None, config: str | None) -> profiles.ProfileConfig:
    return profiles.load_profile(
        name=profile,
        config_path=Path(config) if config else None,
    )


def _resolve_store(
    profile_config: profiles.ProfileConfig,
    output: str | None,
    must_exist: bool = False,
) -> stores.LocalStore:
    path = Path(output if output is not None else profile_config.store.path)
    # read-only commands must not create a store from a mistyped path
    if must_exist and not path.is_dir():
        raise FileNotFoundError(
            f"Store directory '{path}' not found. Run 'retailnorm run' first."
        )
    if output is not None:
        return stores.LocalStore(output)
    return profile_config.store.create()


def main() -> None:
    app.meta()
