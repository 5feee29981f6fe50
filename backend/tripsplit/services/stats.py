"""Spending statistics for one group and across all groups."""
from tripsplit.schemas import DEFAULT_CATEGORY, Group, Overview, RecentBill, Stats


def compute_stats(group: Group) -> Stats:
    total = 0.0
    by_category: dict[str, float] = {}
    by_member: dict[str, float] = {}

    for bill in group.bills:
        total += bill.amount
        cat = bill.category or DEFAULT_CATEGORY
        by_category[cat] = round(by_category.get(cat, 0.0) + bill.amount, 2)
        by_member[bill.paid_by] = round(by_member.get(bill.paid_by, 0.0) + bill.amount, 2)

    return Stats(
        total=round(total, 2),
        by_category=by_category,
        by_member=by_member,
        average_per_person=round(total / len(group.members), 2) if group.members else 0.0,
        bill_count=len(group.bills),
        top_category=max(by_category, key=by_category.get) if by_category else None,
        top_spender=max(by_member, key=by_member.get) if by_member else None,
    )


def compute_overview(groups: list[Group], top: int = 3, recent: int = 5) -> Overview:
    categories: dict[str, float] = {}
    for g in groups:
        for bill in g.bills:
            cat = bill.category or DEFAULT_CATEGORY
            categories[cat] = round(categories.get(cat, 0.0) + bill.amount, 2)

    recent_bills = sorted(
        (RecentBill(group_id=g.id, group_name=g.name, bill=b) for g in groups for b in g.bills),
        key=lambda r: r.bill.created_at,
        reverse=True,
    )

    return Overview(
        total_groups=len(groups),
        total_members=sum(len(g.members) for g in groups),
        total_bills=sum(len(g.bills) for g in groups),
        total_expenses=round(sum(b.amount for g in groups for b in g.bills), 2),
        top_categories=sorted(categories.items(), key=lambda kv: -kv[1])[:top],
        recent_bills=recent_bills[:recent],
    )
