#!/usr/bin/env python3
"""
Shuttle - Basic Usage Example

Runs an agent with one local tool against OpenAI. Needs OPENAI_API_KEY;
SHUTTLE_MODEL picks the model.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from shuttle import Agent, AgentConfig, ToolResult, define_model_tool, get_text_content
from shuttle.providers import OpenAIProvider


class WeatherArgs(BaseModel):
    city: str = Field(description="City name")


async def get_weather(args: WeatherArgs, ctx) -> ToolResult:
    return ToolResult(output=f"{args.city}: 22°C, clear skies")


async def main():
    logging.basicConfig(level=logging.INFO)
    config = AgentConfig.from_env(max_steps=5)
    weather = define_model_tool("get_weather", "Current weather for a city", WeatherArgs, get_weather)

    agent = Agent(OpenAIProvider(config), config, tools=[weather])
    session = agent.create_session("You are a concise assistant.")

    messages = await agent.run(session, "What's the weather in Tokyo?")
    print(get_text_content(messages[-1]))


if __name__ == "__main__":
    asyncio.run(main())
