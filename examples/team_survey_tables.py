"""
Example of building multilevel correlation tables for a team survey.

This example demonstrates the full workflow from data loading through
exporting an individual-level and a team-level correlation table.
"""

import os
import tempfile

from mltable import MultilevelTableTool, columns, corr_level1, corr_level2
from mltable.datasets import make_team_survey


def main():
    """Run the example workflow."""
    print("=" * 60)
    print("MULTILEVEL CORRELATION TABLE EXAMPLE")
    print("=" * 60)

    # Step 1: Create and save sample data
    print("\n1. Creating sample team survey data...")
    teamstate = make_team_survey()
    output_dir = tempfile.mkdtemp()
    data_path = os.path.join(output_dir, 'teamstate.csv')
    teamstate.to_csv(data_path, index=False)

    print(f"   - {len(teamstate)} respondents in {teamstate['Team'].nunique()} teams")
    print(f"   - Columns: {list(teamstate.columns[:6])} ...")

    # Step 2: Individual-level table with the convenience function
    print("\n2. Individual-level correlation table...")
    var_list = {
        'var1': 3,
        'var2': 4,
        'var3': columns(5, 14),
        'var4': columns(15, 24),
        'var5': columns(25, 28),
    }
    level1 = corr_level1(
        teamstate, var_list,
        var_labels=["Gender", "Age", "Positive affect", "Negative affect", "Psychological safety"]
    )
    print(level1.to_string())

    # Step 3: Team-level table with the convenience function
    print("\n3. Team-level correlation table...")
    var_list2 = {
        'var1': columns(5, 14),
        'var2': columns(15, 24),
        'var3': columns(25, 28),
    }
    level2 = corr_level2(
        teamstate, var_list2, groupid="Team",
        var_labels=["Team PA", "Team NA", "Team PS"]
    )
    print(level2.to_string())

    # Step 4: The same tables through the workflow tool
    print("\n4. Building and exporting tables with MultilevelTableTool...")
    tool = MultilevelTableTool(log_level='WARNING')
    tool.load_data(data_path)

    tool.corr_level1(var_list, digits=2, triangle="upper")
    tool.corr_level2(var_list2, groupid="Team", rwg_method="median", lead_decimal=False)

    for name in ('level1', 'level2'):
        path = tool.export_table(name, os.path.join(output_dir, f"{name}.csv"))
        print(f"   - {name} table written to {path}")

    summary = tool.get_analysis_summary()
    print(f"   - Tables built: {summary['tables_built']}")
    print(f"   - Shapes: {summary['table_shapes']}")

    print("\nExample completed successfully!")


if __name__ == "__main__":
    main()
