#!/usr/bin/env python3
"""命令行内容搜索脚本

在目录中搜索关键词并打印按评分排序的结果。

使用方法:
    python scripts/search.py <目录> <关键词> [--regex] [--case-sensitive] [--ext md --ext txt]
"""

import argparse
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from textops.errors import TextOpsError
from textops.search_service import search_content
from textops.security import SecurityError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="在目录中搜索文件内容")
    parser.add_argument("directory", help="搜索根目录")
    parser.add_argument("keyword", help="搜索关键词")
    parser.add_argument("--regex", action="store_true", help="把关键词作为正则表达式")
    parser.add_argument("--case-sensitive", action="store_true", help="区分大小写")
    parser.add_argument("--ext", action="append", default=[], help="扩展名过滤，可重复")
    parser.add_argument("--max-files", type=int, default=0, help="最多返回的文件数")
    parser.add_argument("--max-depth", type=int, default=0, help="最大遍历深度")
    parser.add_argument("--no-recursive", action="store_true", help="不搜索子目录")
    return parser


def main(argv=None):
    """主函数：执行搜索并打印结果"""
    args = build_parser().parse_args(argv)

    try:
        report = search_content(
            directory=args.directory,
            keyword=args.keyword,
            case_sensitive=args.case_sensitive,
            file_extensions=args.ext,
            max_files=args.max_files,
            max_depth=args.max_depth,
            recursive=not args.no_recursive,
            use_regex=args.regex,
        )
    except (TextOpsError, SecurityError, ValueError) as e:
        print(f"错误: {e}", file=sys.stderr)
        return 1

    print("=" * 60)
    print(f"搜索 \"{args.keyword}\"：{report.total_files} 个文件，{report.total_matches} 处匹配")
    print("=" * 60)

    for result in report.results:
        print(f"\n[{result.score}] {result.path} ({result.match_type})")
        for match in result.matches:
            print(f"  {match.line_number}: {match.context}")

    print(f"\n耗时 {report.duration_ms}ms，跳过 {report.skipped_files} 个大文件")
    if report.truncated:
        print("结果已达到最大文件数，可能还有更多匹配。")
    return 0


if __name__ == "__main__":
    sys.exit(main())
