"""
Unit tests for the 'summary' command.
"""

import json

from click.testing import CliRunner

from ensodag.cli.commands.summary import summary


class TestSummaryCommand:

    def test_consistent_dataset(self, dataset_files):
        dataset_path, capacities_path = dataset_files
        result = CliRunner().invoke(summary, ["-d", str(dataset_path), "-k", str(capacities_path)])
        assert result.exit_code == 0
        assert "Levels" in result.output
        assert "Dataset is consistent" in result.output

    def test_issues_are_reported(self, tmp_path, dataset_dict, capacities):
        dataset_dict["graph"]["links"].append({"source": 6, "target": 1, "weight": 0.05})
        dataset_path = tmp_path / "graph.json"
        capacities_path = tmp_path / "K_max.json"
        dataset_path.write_text(json.dumps(dataset_dict))
        capacities_path.write_text(json.dumps(capacities))

        result = CliRunner().invoke(
            summary, ["-d", str(dataset_path), "-k", str(capacities_path), "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output.splitlines()[-1])
        assert data["acyclic"] is True
        assert data["graph"]["total_edges"] == 7
        assert [i["kind"] for i in data["issues"]] == ["graph_consistency"]
