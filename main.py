"""Main entry point for the Temporal Cognition engine."""

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from temporal_cognition.engine.cognition import TemporalCognition
from temporal_cognition.models.task import TaskCategory, TaskComplexity, TaskStatus
from temporal_cognition.utils.config import get_default_config, load_config
from temporal_cognition.utils.time_math import parse_relative_time


def parse_deadline(value: Optional[str], now: datetime) -> Optional[datetime]:
    """Parse an ISO timestamp or a relative offset like "4h"."""
    if value is None:
        return None

    offset_ms = parse_relative_time(value)
    if offset_ms is not None:
        return now + timedelta(milliseconds=offset_ms)

    return datetime.fromisoformat(value)


def print_json(data):
    print(json.dumps(data, indent=2, default=str))


def run_command(args, cognition: TemporalCognition) -> int:
    """Dispatch one CLI command. Returns the process exit code."""
    estimator = cognition.estimator
    scheduler = cognition.scheduler
    memory = cognition.memory

    if args.command in ('estimate', 'start', 'complete') and estimator is None:
        print("Task estimator is disabled")
        return 1
    if args.command in ('add-task', 'next', 'list', 'overdue', 'cleanup') and scheduler is None:
        print("Priority scheduler is disabled")
        return 1
    if args.command in ('remember', 'search', 'prune') and memory is None:
        print("Temporal memory is disabled")
        return 1

    if args.command == 'estimate':
        print_json(estimator.estimate(args.category, args.complexity).to_dict())

    elif args.command == 'start':
        print(estimator.start_task(args.category, args.complexity))

    elif args.command == 'complete':
        entry = estimator.complete_task(args.task_id)
        if entry is None:
            print("No active task to complete")
            return 1
        print_json(entry.to_dict())

    elif args.command == 'add-task':
        task = cognition.estimate_and_schedule(
            args.title,
            args.category,
            args.complexity,
            urgency=args.urgency,
            importance=args.importance,
            deadline=parse_deadline(args.deadline, cognition.clock()),
            description=args.description,
            tags=args.tag or (),
        )
        if task is None:
            print("Task estimator is disabled")
            return 1
        print_json(task.to_dict())

    elif args.command == 'next':
        task = scheduler.get_next_task()
        if task is None:
            print("No pending tasks")
            return 0
        print_json(task.to_dict())

    elif args.command == 'list':
        tasks = scheduler.get_task_list()
        if args.status:
            tasks = [t for t in tasks if t.status == TaskStatus(args.status)]
        for task in tasks:
            print(f"{task.priority:3d}  {task.status.value:<11}  {task.id}  {task.title}")

    elif args.command == 'overdue':
        for task in scheduler.get_overdue_tasks():
            print(f"{task.deadline.isoformat()}  {task.id}  {task.title}")

    elif args.command == 'cleanup':
        print(f"Removed {scheduler.cleanup_old_tasks(args.max_age_days)} tasks")

    elif args.command == 'remember':
        entry = memory.add_entry(args.content)
        for task_id in args.task or ():
            memory.associate_task(entry.id, task_id)
        print(entry.id)

    elif args.command == 'search':
        results = memory.search(
            args.query,
            max_age_days=args.max_age_days,
            limit=args.limit,
            min_relevance=args.min_relevance,
        )
        for entry in results:
            print(f"{entry.relevance_score:.3f}  {entry.id}  {entry.content}")

    elif args.command == 'prune':
        removed = memory.prune(max_age_days=args.max_age_days, min_access_count=args.min_access_count)
        print(f"Pruned {removed} memories")

    elif args.command == 'status':
        print_json(cognition.status())

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Temporal Cognition: duration estimates, priorities and memory"
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--state',
        type=str,
        default=None,
        help='Path to the state file (default: storage.path from config)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    categories = [c.value for c in TaskCategory]
    complexities = [c.value for c in TaskComplexity]

    for name in ('estimate', 'start'):
        sub = commands.add_parser(name, help=f'{name.capitalize()} a task')
        sub.add_argument('category', choices=categories)
        sub.add_argument('complexity', choices=complexities)

    sub = commands.add_parser('complete', help='Complete a timed task')
    sub.add_argument('task_id', nargs='?', default=None)

    sub = commands.add_parser('add-task', help='Estimate and schedule a task')
    sub.add_argument('title')
    sub.add_argument('--category', choices=categories, default='other')
    sub.add_argument('--complexity', choices=complexities, default='moderate')
    sub.add_argument('--urgency', type=int, default=50)
    sub.add_argument('--importance', type=int, default=50)
    sub.add_argument('--deadline', help='ISO timestamp or offset such as 4h, 2d')
    sub.add_argument('--description')
    sub.add_argument('--tag', action='append')

    commands.add_parser('next', help='Show the highest-priority pending task')

    sub = commands.add_parser('list', help='List tasks by priority')
    sub.add_argument('--status', choices=[s.value for s in TaskStatus])

    commands.add_parser('overdue', help='List overdue tasks')

    sub = commands.add_parser('cleanup', help='Remove old finished tasks')
    sub.add_argument('--max-age-days', type=float, default=30)

    sub = commands.add_parser('remember', help='Add a memory')
    sub.add_argument('content')
    sub.add_argument('--task', action='append', help='Associate a task id')

    sub = commands.add_parser('search', help='Search memories')
    sub.add_argument('query')
    sub.add_argument('--max-age-days', type=float, default=None)
    sub.add_argument('--limit', type=int, default=10)
    sub.add_argument('--min-relevance', type=float, default=0.1)

    sub = commands.add_parser('prune', help='Prune stale memories')
    sub.add_argument('--max-age-days', type=float, default=90)
    sub.add_argument('--min-access-count', type=int, default=0)

    commands.add_parser('status', help='Show component statistics')

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    config = load_config(args.config) if Path(args.config).exists() else get_default_config()
    cognition = TemporalCognition.from_config(config, storage_path=args.state)

    try:
        code = run_command(args, cognition)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2

    cognition.tick()
    cognition.save()
    return code


if __name__ == "__main__":
    sys.exit(main())
