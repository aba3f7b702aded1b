"""CLI 命令列工具

提供資料清洗、探索性分析與資料品質報告等命令列功能。
"""

from pathlib import Path

import click

from presumpscot.config import settings
from presumpscot.pipeline.analyze import run_analysis
from presumpscot.pipeline.clean import clean_workbook, get_data_quality_report
from presumpscot.pipeline.load import load_cleaned_csv


PATH = click.Path(path_type=Path)


def _run(func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
def cli():
    """Presumpscot 溶氧與細菌監測資料分析工具"""
    pass


@cli.command()
@click.argument("workbook", type=PATH, required=False)
@click.argument("output", type=PATH, required=False)
def clean(workbook, output):
    """清洗原始活頁簿並輸出 CSV"""
    workbook = workbook or settings.raw_workbook
    output = output or settings.cleaned_csv

    click.echo("正在清洗資料...")
    _run(clean_workbook, workbook, output, settings)
    click.echo("清洗完成！")


@cli.command()
@click.argument("cleaned", type=PATH, required=False)
@click.option("--output-dir", "-o", type=PATH, default=None, help="圖表與摘要輸出目錄")
def analyze(cleaned, output_dir):
    """執行探索性統計並匯出站點摘要"""
    cleaned = cleaned or settings.cleaned_csv
    output_dir = output_dir or settings.output_dir

    result = _run(run_analysis, cleaned, output_dir, settings)
    click.echo(f"分析完成！共 {len(result['summary'])} 個站點")


@cli.command()
@click.option("--workbook", type=PATH, default=None, help="原始活頁簿路徑")
@click.option("--output-dir", "-o", type=PATH, default=None, help="圖表與摘要輸出目錄")
def run(workbook, output_dir):
    """依序執行清洗與分析"""
    workbook = workbook or settings.raw_workbook
    output_dir = output_dir or settings.output_dir

    _run(clean_workbook, workbook, settings.cleaned_csv, settings)
    result = _run(run_analysis, settings.cleaned_csv, output_dir, settings)
    click.echo(f"全部完成！共 {len(result['summary'])} 個站點")


@cli.command()
@click.argument("cleaned", type=PATH, required=False)
def report(cleaned):
    """顯示清洗後資料的品質報告"""
    cleaned = cleaned or settings.cleaned_csv
    df = _run(load_cleaned_csv, cleaned)
    info = get_data_quality_report(df)

    click.echo("資料品質報告:")
    click.echo(f"  總筆數: {info['total_rows']:,}")
    click.echo(f"  站點數: {info['sites']}")
    click.echo(f"  年份: {', '.join(str(y) for y in info['years'])}")
    click.echo(f"  重複樣本: {info['duplicates']}（推定 {info['reconstructed_flags']}）")
    click.echo(f"  同站同日超過兩筆: {info['qc_groups_over_two']}")
    click.echo(f"  大腸桿菌設限: < {info['censored_left']}, > {info['censored_right']}")
    for col in ("Temp", "DO", "PctSat", "Ecoli"):
        if col in info["columns"]:
            click.echo(f"  {col}: 缺失 {info['columns'][col]['missing_percentage']}%")


if __name__ == "__main__":
    cli()
