"""
Workbook tool catalog.

Every operation the model may request against the user's workbook is declared once
here as a Pydantic input model. The vendor renderings (Anthropic ``input_schema``,
OpenAI ``function.parameters``) are generated from these models, so the two can
never drift. The tools themselves run client-side in the workbook executor.
"""

from functools import lru_cache
from typing import List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import ToolSchema
from .registry import ToolRegistry


class ToolInput(BaseModel):
    """Base for tool inputs. Field names are exposed to the model in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


Matrix = List[List[str]]

HorizontalAlignment = Literal[
    "General", "Left", "Center", "Right", "Fill", "Justify", "CenterAcrossSelection", "Distributed"
]
VerticalAlignment = Literal["Top", "Center", "Bottom", "Justify", "Distributed"]
BorderStyle = Literal["None", "Thin", "Medium", "Thick", "Double"]
ChartType = Literal[
    "ColumnClustered",
    "ColumnStacked",
    "BarClustered",
    "BarStacked",
    "Line",
    "LineMarkers",
    "Pie",
    "Area",
    "AreaStacked",
    "XYScatter",
    "XYScatterLines",
    "Radar",
    "Doughnut",
    "Bubble",
]


class WriteCellsInput(ToolInput):
    sheet: str = Field(description='The worksheet name to write to (e.g. "Sheet1")')
    range: str = Field(description='The cell range address (e.g. "A1", "A1:B10", "C3:C3")')
    values: Optional[Matrix] = Field(
        default=None,
        description="2D array of values to write. Each inner array is a row. Use this for plain values.",
    )
    formulas: Optional[Matrix] = Field(
        default=None,
        description=(
            "2D array of formulas to write. Each inner array is a row. "
            'Formulas must start with "=". If provided, takes precedence over values.'
        ),
    )


class ReadRangeInput(ToolInput):
    sheet: str = Field(description="The worksheet name to read from")
    range: str = Field(description='The cell range address to read (e.g. "A1:D20")')


class GetWorkbookInfoInput(ToolInput):
    pass


class FormatCellsInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description="The cell range address to format")
    number_format: Optional[str] = Field(
        default=None, description='Number format string (e.g. "#,##0.00", "0%", "yyyy-mm-dd", "$#,##0.00")'
    )
    bold: Optional[bool] = Field(default=None, description="Set font to bold")
    italic: Optional[bool] = Field(default=None, description="Set font to italic")
    font_size: Optional[float] = Field(default=None, description="Font size in points")
    font_color: Optional[str] = Field(default=None, description='Font color as hex (e.g. "#FF0000" for red)')
    fill_color: Optional[str] = Field(
        default=None, description='Cell background fill color as hex (e.g. "#FFFF00" for yellow)'
    )
    horizontal_alignment: Optional[HorizontalAlignment] = Field(default=None, description="Horizontal text alignment")
    vertical_alignment: Optional[VerticalAlignment] = Field(default=None, description="Vertical text alignment")
    wrap_text: Optional[bool] = Field(default=None, description="Whether to wrap text in cells")
    border_style: Optional[BorderStyle] = Field(default=None, description="Border style to apply around the range")
    border_color: Optional[str] = Field(default=None, description="Border color as hex")
    merge: Optional[bool] = Field(default=None, description="Whether to merge the cells in the range")


class CreateChartInput(ToolInput):
    sheet: str = Field(description="The worksheet name where the chart will be created")
    data_range: str = Field(description='The data range for the chart (e.g. "A1:D10")')
    chart_type: ChartType = Field(description="The type of chart to create")
    title: Optional[str] = Field(default=None, description="Chart title text")
    series_by: Optional[Literal["Auto", "Columns", "Rows"]] = Field(
        default=None, description="Whether data series are in rows or columns. Default: Auto"
    )
    position: Optional[str] = Field(
        default=None, description='Cell address where the chart top-left corner should be placed (e.g. "F1")'
    )


class SortCriterion(ToolInput):
    column: int = Field(description="Zero-based column index to sort by")
    ascending: bool = Field(description="Sort ascending (true) or descending (false)")


class SortRangeInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description='The range to sort (e.g. "A1:D20")')
    sort_by: List[SortCriterion] = Field(description="Array of sort criteria")
    has_headers: Optional[bool] = Field(
        default=None, description="Whether the first row contains headers. Default: true"
    )


class FilterDataInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description='The data range to filter (e.g. "A1:D20")')
    column: int = Field(description="Zero-based column index to filter on")
    values: List[str] = Field(description="Array of values to show (hide all others)")


class SetDataValidationInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description="The cell range to apply validation to")
    validation_type: Literal["list", "wholeNumber", "decimal", "date", "textLength", "custom"] = Field(
        alias="type", description="The type of validation to apply"
    )
    list_source: Optional[str] = Field(
        default=None,
        description='For list validation: comma-separated values (e.g. "Active,Pending,Closed")',
    )
    operator: Optional[
        Literal[
            "Between",
            "NotBetween",
            "EqualTo",
            "NotEqualTo",
            "GreaterThan",
            "LessThan",
            "GreaterThanOrEqualTo",
            "LessThanOrEqualTo",
        ]
    ] = Field(default=None, description="Comparison operator for numeric/date/textLength validation")
    formula1: Optional[str] = Field(default=None, description="First formula/value for the validation rule")
    formula2: Optional[str] = Field(
        default=None, description="Second formula/value (for Between/NotBetween operators)"
    )
    custom_formula: Optional[str] = Field(
        default=None, description="For custom validation: a formula that evaluates to TRUE/FALSE"
    )
    error_message: Optional[str] = Field(default=None, description="Error message shown when validation fails")


class AddConditionalFormatInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description="The cell range to format")
    rule_type: Literal["cellValue", "colorScale", "dataBar", "iconSet"] = Field(
        description="The type of conditional format"
    )
    operator: Optional[
        Literal[
            "GreaterThan",
            "LessThan",
            "Between",
            "EqualTo",
            "NotEqualTo",
            "GreaterThanOrEqual",
            "LessThanOrEqual",
        ]
    ] = Field(default=None, description="For cellValue rules: the comparison operator")
    formula1: Optional[str] = Field(default=None, description="First formula/value for the condition")
    formula2: Optional[str] = Field(default=None, description="Second formula/value (for Between operator)")
    font_color: Optional[str] = Field(default=None, description="Font color when condition is met (hex)")
    fill_color: Optional[str] = Field(default=None, description="Fill color when condition is met (hex)")


class SetColumnWidthInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description='Column range (e.g. "A:C" or "B:B")')
    width: Optional[float] = Field(default=None, description="Column width in points")
    auto_fit: Optional[bool] = Field(
        default=None, description="Auto-fit column width to content. If true, width is ignored."
    )


class SetRowHeightInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description='Row range (e.g. "1:1" or "1:5")')
    height: Optional[float] = Field(default=None, description="Row height in points")
    auto_fit: Optional[bool] = Field(
        default=None, description="Auto-fit row height to content. If true, height is ignored."
    )


class ToggleGridlinesInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    show: bool = Field(description="Whether to show (true) or hide (false) gridlines")


class SetPrintAreaInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: str = Field(description='The range to set as print area (e.g. "A1:F20")')


class AddWorksheetInput(ToolInput):
    name: str = Field(description="Name for the new worksheet")


class TraceFormulaInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    cell: str = Field(description='The cell address to trace (e.g. "B5")')


class FindErrorsInput(ToolInput):
    sheet: str = Field(description="The worksheet name")
    range: Optional[str] = Field(
        default=None, description='The range to scan (e.g. "A1:Z100"). If omitted, scans the used range.'
    )


class EditChartInput(ToolInput):
    sheet: str = Field(description="The worksheet containing the chart")
    chart_name: Optional[str] = Field(
        default=None, description="The name of the chart to edit (use get_workbook_info to find chart names)"
    )
    chart_index: Optional[int] = Field(
        default=None, description="Zero-based index of the chart on the sheet (alternative to chartName)"
    )
    title: Optional[str] = Field(default=None, description="New chart title")
    show_legend: Optional[bool] = Field(default=None, description="Show or hide the legend")
    legend_position: Optional[Literal["Top", "Bottom", "Left", "Right", "Invalid"]] = Field(
        default=None, description="Position of the legend"
    )
    value_axis_title: Optional[str] = Field(default=None, description="Title for the value (Y) axis")
    category_axis_title: Optional[str] = Field(default=None, description="Title for the category (X) axis")
    data_range: Optional[str] = Field(default=None, description='New data range for the chart (e.g. "A1:D10")')


class PivotValueField(ToolInput):
    field: str = Field(description="Column name for the value field")
    summarize_by: Optional[Literal["Sum", "Count", "Average", "Max", "Min", "Product", "CountNumbers"]] = Field(
        default=None, description="Aggregation function. Default: Sum"
    )


class CreatePivotTableInput(ToolInput):
    source_sheet: str = Field(description="Sheet containing the source data")
    source_range: str = Field(description='The data range for the pivot table (e.g. "A1:E100")')
    destination_sheet: str = Field(description="Sheet where the pivot table will be placed")
    destination_cell: str = Field(description='Top-left cell for the pivot table (e.g. "A1")')
    name: str = Field(description="Name for the pivot table")
    rows: Optional[List[str]] = Field(default=None, description="Column names to use as row fields")
    columns: Optional[List[str]] = Field(default=None, description="Column names to use as column fields")
    values: Optional[List[PivotValueField]] = Field(
        default=None, description="Value fields with aggregation settings"
    )
    filters: Optional[List[str]] = Field(default=None, description="Column names to use as filter fields")


class RefreshPivotTableInput(ToolInput):
    sheet: str = Field(description="Sheet containing the pivot table")
    name: str = Field(description="Name of the pivot table to refresh")


WORKBOOK_TOOLS: Tuple[Tuple[str, str, Type[ToolInput]], ...] = (
    (
        "write_cells",
        "Write values or formulas to a range of cells in the workbook. "
        "Use this to insert data, formulas, or update existing cells.",
        WriteCellsInput,
    ),
    (
        "read_range",
        "Read the values and formulas from a specific range of cells. "
        "Use this to inspect cell contents before making changes or to gather additional context.",
        ReadRangeInput,
    ),
    (
        "get_workbook_info",
        "Get detailed information about the workbook structure: all sheet names, used ranges, tables, "
        "and named ranges. Use this when you need to understand the overall workbook layout.",
        GetWorkbookInfoInput,
    ),
    (
        "format_cells",
        "Apply formatting to a range of cells (number format, font, fill, borders, alignment).",
        FormatCellsInput,
    ),
    ("create_chart", "Create a new chart from a data range.", CreateChartInput),
    ("sort_range", "Sort data in a range or table by one or more columns.", SortRangeInput),
    ("filter_data", "Apply auto-filter to a range or table column.", FilterDataInput),
    (
        "set_data_validation",
        "Set data validation rules on a range (dropdowns, numeric constraints, etc.).",
        SetDataValidationInput,
    ),
    ("add_conditional_format", "Apply conditional formatting rules to a range.", AddConditionalFormatInput),
    ("set_column_width", "Set the width of one or more columns.", SetColumnWidthInput),
    ("set_row_height", "Set the height of one or more rows.", SetRowHeightInput),
    ("toggle_gridlines", "Show or hide gridlines on a worksheet.", ToggleGridlinesInput),
    ("set_print_area", "Set the print area for a worksheet.", SetPrintAreaInput),
    ("add_worksheet", "Add a new worksheet to the workbook.", AddWorksheetInput),
    (
        "trace_formula",
        "Trace a formula's dependencies. Returns the formula, its direct precedent cells (cells it references), "
        "and whether any cells in the chain have errors. Use this to debug formula errors like #REF!, #VALUE!, "
        "#N/A, etc.",
        TraceFormulaInput,
    ),
    (
        "find_errors",
        "Scan a range for cells containing errors (#REF!, #VALUE!, #N/A, #DIV/0!, #NAME?, #NULL!, #NUM!). "
        "Returns addresses and error types of all error cells found.",
        FindErrorsInput,
    ),
    (
        "edit_chart",
        "Modify an existing chart's properties (title, axes, legend, data range).",
        EditChartInput,
    ),
    ("create_pivot_table", "Create a pivot table from a data range.", CreatePivotTableInput),
    (
        "refresh_pivot_table",
        "Refresh an existing pivot table to reflect updated source data.",
        RefreshPivotTableInput,
    ),
)


@lru_cache(maxsize=1)
def workbook_tool_definitions() -> Tuple[ToolSchema, ...]:
    """Build the schemas for every workbook tool. Generated once per process."""
    return tuple(ToolRegistry.build_schema(name, description, model) for name, description, model in WORKBOOK_TOOLS)
