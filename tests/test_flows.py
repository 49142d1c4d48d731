"""
Tests for flow aggregation, projection and summaries.
"""

import pytest

from moneyflow.flows import (
    calculate_flows,
    future_value,
    net_worth,
    profile_summaries,
    project_node,
    projection_series,
    sub_item_breakdown,
)
from moneyflow.graph import FlowGraph
from moneyflow.graph.seed import seed_default_graph
from moneyflow.models.graph import AssetNode, BucketNode, IncomeNode, NodeType, SubItem
from moneyflow.models.simulation import SimulationConfig


class TestAggregator:
    """Tests for monthly flow aggregation."""

    def test_income_to_bucket(self, salary_graph):
        """Test the basic salary scenario."""
        stats = salary_graph.calculate_flows()
        assert stats.total_income == 5_000_000
        assert stats.node_balances[2].inflow == 1_000_000
        assert stats.net(2) == 1_000_000
        assert stats.net(1) == -1_000_000
        assert stats.total_invested == 0
        assert stats.total_expenses == 0

    def test_net_is_inflow_minus_outflow(self):
        """Test the balance identity on the sample graph."""
        graph = seed_default_graph(FlowGraph())
        stats = graph.calculate_flows()
        for balance in stats.node_balances.values():
            assert balance.net == balance.inflow - balance.outflow

    def test_seed_totals(self):
        """Test totals on the sample graph."""
        graph = seed_default_graph(FlowGraph())
        stats = graph.calculate_flows()
        assert stats.total_income == 3_500_000
        assert stats.total_invested == 1_000_000
        assert stats.total_expenses == 590_000
        assert stats.net(2) == 3_500_000 - 2_000_000
        assert stats.net(4) == 1_000_000 - 590_000

    def test_every_counted_link_lands_once(self):
        """Test that inflows add up to the counted link amounts."""
        graph = seed_default_graph(FlowGraph())
        stats = graph.calculate_flows()
        counted = sum(link.amount for link in graph.filtered_links())
        assert sum(b.inflow for b in stats.node_balances.values()) == counted
        assert sum(b.outflow for b in stats.node_balances.values()) == counted

    def test_profile_filtering(self):
        """Test that totals only count the profile's own and shared nodes."""
        graph = FlowGraph(owners=["A", "B"])
        a_income = graph.add_node(NodeType.INCOME, "A pay", 100, owner="A").value
        b_income = graph.add_node(NodeType.INCOME, "B pay", 200, owner="B").value
        joint = graph.add_node(NodeType.BUCKET, "Joint", owner="").value
        graph.add_link(a_income.id, joint.id, 50)
        graph.add_link(b_income.id, joint.id, 70)

        stats_a = graph.calculate_flows("A")
        stats_b = graph.calculate_flows("B")

        assert stats_a.total_income == 100
        assert stats_b.total_income == 200
        assert stats_a.node_balances[joint.id].inflow == 120
        assert stats_a.profile == "A"

    def test_cross_profile_link(self):
        """Test that a link into another profile's node is counted but not as expense."""
        graph = FlowGraph(owners=["A", "B"])
        source = graph.add_node(NodeType.BUCKET, "A cash", owner="A").value
        expense = graph.add_node(NodeType.EXPENSE, "B rent", owner="B").value
        graph.add_link(source.id, expense.id, 30)

        stats = graph.calculate_flows("A")

        assert stats.node_balances[source.id].outflow == 30
        assert stats.node_balances[expense.id].inflow == 30
        assert stats.total_expenses == 0
        assert graph.calculate_flows("B").total_expenses == 30

    def test_empty_profile_sees_everything(self):
        """Test that an empty profile aggregates every node."""
        graph = FlowGraph(owners=["A", "B"])
        graph.add_node(NodeType.INCOME, "A pay", 100, owner="A")
        graph.add_node(NodeType.INCOME, "B pay", 200, owner="B")
        stats = graph.calculate_flows("")
        assert stats.total_income == 300
        assert stats.profile is None

    def test_function_defaults_to_current_profile(self):
        """Test that the plain function scopes to the current profile like the method."""
        graph = FlowGraph(owners=["A", "B"], current_profile="A")
        graph.add_node(NodeType.INCOME, "A pay", 100, owner="A")
        graph.add_node(NodeType.INCOME, "B pay", 200, owner="B")

        stats = calculate_flows(graph)

        assert stats.total_income == 100
        assert stats.profile == "A"
        assert calculate_flows(graph, "").total_income == 300
        assert stats.total_income == graph.calculate_flows().total_income

    def test_invested_counts_asset_targets(self):
        """Test that links into assets count as invested."""
        graph = FlowGraph()
        bucket = graph.add_node(NodeType.BUCKET, "Main").value
        asset = graph.add_node(NodeType.ASSET, "ISA").value
        other = graph.add_node(NodeType.BUCKET, "Savings").value
        graph.add_link(bucket.id, asset.id, 300)
        graph.add_link(bucket.id, other.id, 200)
        assert graph.calculate_flows().total_invested == 300

    def test_no_projection_returns_current_values(self, salary_graph):
        """Test that a zero horizon leaves values as they are."""
        stats = salary_graph.calculate_flows()
        assert not stats.is_projected
        assert stats.future_values == {1: 5_000_000, 2: 0}

    def test_projection_uses_net_flow(self, salary_graph):
        """Test that projected balances include the monthly net flow."""
        salary_graph.update_simulation(months=12)
        stats = salary_graph.calculate_flows()
        assert stats.months == 12
        assert stats.future_values[2] == pytest.approx(12_000_000)
        assert stats.future_values[1] == 5_000_000

    def test_explicit_simulation_overrides_graph(self, salary_graph):
        """Test passing a simulation directly to the aggregator."""
        stats = calculate_flows(salary_graph, "나", SimulationConfig(months=6))
        assert stats.future_values[2] == pytest.approx(6_000_000)


class TestProjection:
    """Tests for the future value formula."""

    def test_zero_months_is_identity(self):
        """Test that a zero horizon returns the value unchanged."""
        assert future_value(1234.5, 0.05, 100, 0) == 1234.5
        assert future_value(1234.5, 0.05, 100, 0, 0.03, True) == 1234.5

    def test_zero_rate_is_linear(self):
        """Test the no-interest branch."""
        assert future_value(1000, 0.0, 100, 12) == 2200

    def test_compounding_branch(self):
        """Test the closed-form formula with interest."""
        r = 0.06 / 12
        growth = (1 + r) ** 12
        expected = 1000 * growth + 100 * (growth - 1) / r
        assert future_value(1000, 0.06, 100, 12) == pytest.approx(expected)

    def test_long_horizon_scenario(self):
        """Test 10,000,000 at 6% plus 200,000 a month for a year."""
        assert future_value(10_000_000, 0.06, 200_000, 12) == pytest.approx(
            13_083_890.59, abs=1
        )

    def test_negative_flow_drains_balance(self):
        """Test that withdrawals reduce the projection."""
        assert future_value(1000, 0.0, -100, 5) == 500

    def test_negative_rate(self):
        """Test that negative rates compound downwards."""
        assert future_value(1000, -0.12, 0, 12) == pytest.approx(1000 * 0.99 ** 12)

    def test_real_value_discount(self):
        """Test discounting by cumulative monthly inflation."""
        nominal = future_value(1000, 0.06, 0, 24)
        real = future_value(1000, 0.06, 0, 24, annual_inflation=0.03, use_real_value=True)
        assert real == pytest.approx(nominal / (1 + 0.03 / 12) ** 24)

    def test_real_value_with_zero_inflation(self):
        """Test that zero inflation leaves the nominal value."""
        assert future_value(1000, 0.0, 10, 10, 0.0, True) == 1100

    def test_flow_nodes_keep_nominal_value(self):
        """Test that income and expense nodes are not projected."""
        node = IncomeNode(id=1, name="Salary", value=100)
        sim = SimulationConfig(months=120, is_real_value=True)
        assert project_node(node, -100, sim) == 100

    def test_asset_projection_scenario(self):
        """Test an asset fed by a monthly contribution through the graph."""
        graph = FlowGraph()
        bucket = graph.add_node(NodeType.BUCKET, "Main", 0).value
        asset = graph.add_node(
            NodeType.ASSET, "Brokerage", 10_000_000, interest_rate=0.06
        ).value
        graph.add_link(bucket.id, asset.id, 200_000)
        graph.update_simulation(months=12)

        stats = graph.calculate_flows()

        assert stats.future_values[asset.id] == pytest.approx(13_083_890.59, abs=1)
        assert stats.future_values[bucket.id] == pytest.approx(-2_400_000)


class TestProjectionSeries:
    """Tests for chart series."""

    @pytest.fixture
    def bucket(self):
        return BucketNode(id=1, name="Main", value=1000)

    def test_yearly_points(self, bucket):
        """Test one point per year including month 0."""
        series = projection_series(bucket, 100, SimulationConfig(months=24))
        assert series == [(0, 1000), (12, 2200), (24, 3400)]

    def test_horizon_always_included(self, bucket):
        """Test that an uneven horizon still ends on the horizon."""
        series = projection_series(bucket, 100, SimulationConfig(months=30))
        assert [month for month, _ in series] == [0, 12, 24, 30]
        assert series[-1][1] == 4000

    def test_zero_horizon(self, bucket):
        """Test that a zero horizon gives only the current value."""
        assert projection_series(bucket, 100, SimulationConfig()) == [(0, 1000)]

    def test_invalid_step(self, bucket):
        """Test that the step must be positive."""
        with pytest.raises(ValueError):
            projection_series(bucket, 100, SimulationConfig(months=12), step=0)


class TestSummaries:
    """Tests for net worth and profile summaries."""

    def test_net_worth_current(self):
        """Test net worth on the sample graph."""
        graph = seed_default_graph(FlowGraph())
        assert net_worth(graph) == 46_000_000

    def test_net_worth_projected(self, salary_graph):
        """Test that projected values are used when a horizon is set."""
        salary_graph.update_simulation(months=3)
        assert net_worth(salary_graph) == pytest.approx(3_000_000)

    def test_profile_summaries(self):
        """Test per-profile node counts and wealth."""
        graph = FlowGraph(owners=["A", "B"], current_profile="B")
        graph.add_node(NodeType.ASSET, "A ISA", 1000, owner="A")
        graph.add_node(NodeType.INCOME, "A pay", 500, owner="A")
        graph.add_node(NodeType.BUCKET, "B cash", 300, owner="B")
        graph.add_node(NodeType.BUCKET, "Joint", 9999, owner="")

        summaries = profile_summaries(graph)

        assert [(s.name, s.node_count, s.total_wealth, s.is_current) for s in summaries] == [
            ("A", 2, 1000, False),
            ("B", 1, 300, True),
        ]

    def test_sub_item_breakdown(self):
        """Test sub-item values as a share of the asset."""
        node = AssetNode(
            id=1,
            name="ISA",
            value=2_000_000,
            sub_items=[SubItem(name="Bonds", ratio=25), SubItem(name="S&P 500", ratio=75)],
        )
        breakdown = sub_item_breakdown(node)
        assert [(b.name, b.value) for b in breakdown] == [
            ("S&P 500", 1_500_000),
            ("Bonds", 500_000),
        ]
