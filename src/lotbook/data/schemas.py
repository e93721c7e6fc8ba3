"""
Data schemas for CSV file validation.

Defines expected columns and data types for transaction imports and the
holdings export.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


# Transaction log schema (input/output)
TRANSACTIONS_SCHEMA = FileSchema(
    name="transactions",
    description="Chronological transaction log",
    columns=[
        ColumnSchema(name="date", dtype="str", required=True),
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="type", dtype="str", required=True),
        ColumnSchema(name="quantity", dtype="str", required=True),
        ColumnSchema(name="unit_price", dtype="str", required=False),
        ColumnSchema(name="fees", dtype="str", required=False),
        ColumnSchema(name="note", dtype="str", required=False, nullable=True),
    ],
)

# Holdings summary schema (output)
HOLDINGS_SUMMARY_SCHEMA = FileSchema(
    name="holdings_summary",
    description="Per-asset holdings with cost basis and P&L",
    columns=[
        ColumnSchema(name="ticker", dtype="str", required=True),
        ColumnSchema(name="name", dtype="str", required=True),
        ColumnSchema(name="category", dtype="str", required=True),
        ColumnSchema(name="currency", dtype="str", required=True),
        ColumnSchema(name="quantity", dtype="str", required=True),
        ColumnSchema(name="average_cost", dtype="str", required=True),
        ColumnSchema(name="market_price", dtype="str", required=True),
        ColumnSchema(name="market_value", dtype="str", required=True),
        ColumnSchema(name="cost_basis", dtype="str", required=True),
        ColumnSchema(name="unrealized_pnl", dtype="str", required=True),
        ColumnSchema(name="unrealized_pnl_pct", dtype="str", required=True),
        ColumnSchema(name="realized_pnl", dtype="str", required=True),
    ],
)

# Cash balance schema (output, written alongside the holdings summary)
CASH_SCHEMA = FileSchema(
    name="cash",
    description="Cash ledger balance",
    columns=[
        ColumnSchema(name="cash", dtype="str", required=True),
    ],
)
