"""CLI 命令列工具

提供歷史比較、溫度換算與即時預報查詢等命令列功能。
"""

import asyncio
import json
from datetime import date

import click
from pydantic import ValidationError

from weather_dashboard.analytics.engine import compare_day, compare_forecast
from weather_dashboard.analytics.units import convert_temp, convert_temperature
from weather_dashboard.config import configure_logging, get_default_settings
from weather_dashboard.schemas.comparison import ComparisonRequest, ForecastDayInput
from weather_dashboard.services import climatology
from weather_dashboard.services.climatology import UnknownCityError
from weather_dashboard.services.weather_client import WeatherClient, WeatherError
from weather_dashboard.utils.geo import parse_location


def _echo_json(data) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


@click.group()
@click.option("--log-level", default="WARNING", show_default=True, help="日誌等級")
def cli(log_level):
    """天氣儀表板 CLI 工具"""
    configure_logging(log_level)


@cli.command()
@click.argument("request_file", type=click.File("r"))
def compare(request_file):
    """比較 JSON 檔中的預報與歷史基準

    檔案格式：{"forecast": [...], "baselines": [...]}
    """
    try:
        request = ComparisonRequest.model_validate_json(request_file.read())
        results = compare_forecast(request.forecast, request.baselines)
    except (ValidationError, ValueError) as e:
        raise click.ClickException(str(e))

    _echo_json([result.model_dump(by_alias=True) for result in results])


@cli.command("compare-city")
@click.argument("city")
@click.option("--date", "on", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="日期 (YYYY-MM-DD)，預設今日")
@click.option("--temp-high", type=float, required=True, help="預報最高溫 (°F)")
@click.option("--precip", type=click.FloatRange(0, 100), required=True, help="降水機率 (0-100)")
@click.option("--uv", type=click.FloatRange(min=0), required=True, help="紫外線指數")
def compare_city(city, on, temp_high, precip, uv):
    """以城市歷史基準比較單日預報"""
    try:
        baseline = climatology.get_day_stat(city, on.date() if on else date.today())
    except UnknownCityError as e:
        raise click.ClickException(str(e))

    forecast = ForecastDayInput(temp_high=temp_high, precipitation_chance=precip, uv_index=uv)
    _echo_json(compare_day(forecast, baseline).model_dump(by_alias=True))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("value")
@click.option("--to", "target", type=click.Choice(["F", "C"], case_sensitive=False), required=True,
              help="目標單位")
@click.option("--from", "source", type=click.Choice(["F", "C"], case_sensitive=False), default=None,
              help="來源單位；未提供時依數值大小推斷")
def convert(value, target, source):
    """換算溫度"""
    if source:
        try:
            number = float(value)
        except ValueError:
            raise click.BadParameter(f"{value!r} 不是數值", param_hint="VALUE")
        click.echo(convert_temperature(number, source, target))
    else:
        click.echo(convert_temp(value, target))


@cli.command()
@click.argument("city")
def trends(city):
    """顯示城市各項指標每 10 年的變化趨勢"""
    try:
        indicators = climatology.get_trend_indicators(city)
    except UnknownCityError as e:
        raise click.ClickException(str(e))

    for metric, indicator in indicators.items():
        click.echo(f"  {metric}: {indicator.label} ({indicator.direction})")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("location")
@click.option("--city", default=None, help="比較用城市，預設為離座標最近的城市")
def forecast(location, city):
    """取得即時預報並與城市歷史基準比較"""
    if city is None:
        coords = parse_location(location)
        if coords is None:
            raise click.ClickException("未指定 --city 時 LOCATION 必須是座標 (lat,lon)")
        city, _ = climatology.nearest_city(*coords)
    else:
        try:
            city = climatology.get_city(city).name
        except UnknownCityError as e:
            raise click.ClickException(str(e))

    client = WeatherClient(get_default_settings())
    try:
        result = asyncio.run(client.get_location_forecast(location))
    except WeatherError as e:
        raise click.ClickException(f"{e.error_type}: {e.message}")

    baselines = climatology.get_day_stats(
        city, [date.fromisoformat(day.date) for day in result.daily]
    )

    comparisons = compare_forecast([day.to_input() for day in result.daily], baselines)

    click.echo(f"{result.location}（比較城市: {city}）")
    for day, comparison in zip(result.daily, comparisons):
        flags = [
            name for name in ("temp", "precip", "uv")
            if getattr(comparison.anomalies, name)
        ]
        similar = comparison.stats.similar_year
        click.echo(
            f"  {day.day}: {day.temp_high:g}°F "
            f"z={comparison.stats.temp_z_score:+.1f} "
            f"P{comparison.stats.temp_percentile} "
            f"異常={','.join(flags) or '無'} "
            f"相似年份={similar.year or '-'} ({similar.similarity})"
        )


if __name__ == "__main__":
    cli()
