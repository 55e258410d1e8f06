# retailnorm/utils.py
import polars as pl


def assign_sequence(df: pl.DataFrame, alias: str, start: int = 1) -> pl.DataFrame:
    """
    Prepend a sequential integer key to a DataFrame.

    Numbering follows the current row order and restarts on every call,
    so keys are scoped to a single pipeline run rather than drawn from
    global state.

    Args:
        df: DataFrame to number, already in the desired order
        alias: Name of the key column to add
        start: First key value. Defaults to 1.

    Returns:
        DataFrame with the key as its first column (Int64)

    Raises:
        ValueError: If alias is empty or already a column

    Example:
        products = assign_sequence(products.sort("StockCode"), "ProductID")
    """
    if not alias:
        raise ValueError("assign_sequence requires an alias")
    if alias in df.columns:
        raise ValueError(f"Column '{alias}' already exists")

    return df.with_row_index(alias, offset=start).with_columns(
        pl.col(alias).cast(pl.Int64)
    )
