import asyncio

import pydantic
import pytest

from genevo import (
    AutoReproduction,
    CustomBreedReproduction,
    CustomMutateReproduction,
    EngineCallbacks,
    EvolutionEngine,
    WeightedBreed,
    WeightedMutation,
)
from genevo.evolution.engine import EngineMetrics, EngineState
from genevo.exceptions import (
    ConfigurationError,
    EngineDefunctError,
    EvolutionError,
    OperatorSelectionError,
    PopulationSizeError,
)


def pause_at(engine_ref, targets, seen=None):
    """after_generation_fitness_evaluated hook pausing at the given generations."""

    def hook(info):
        if seen is not None:
            seen.append(info.generation_num)
        if info.generation_num in targets:
            engine_ref[0].pause()

    return hook


class TestStart:
    @pytest.mark.asyncio
    async def test_seeds_and_scores_population_before_first_step(self, config_factory):
        calls = []
        scored_at_first_step = []
        holder = []

        def fitness(ind):
            calls.append(ind)
            return float(ind)

        def before_next(info):
            scored_at_first_step.append(len(calls))
            holder[0].pause()

        config = config_factory(
            fitness=fitness,
            callbacks=EngineCallbacks(before_next_generation=before_next),
        )
        engine = EvolutionEngine(config)
        holder.append(engine)

        await engine.start()

        assert scored_at_first_step == [4]
        assert calls[:4] == [0, 1, 2, 3]
        assert len(calls) == 8
        assert engine.generation_num == 1
        assert engine.state == EngineState.PAUSED
        assert not engine.is_running()

    @pytest.mark.asyncio
    async def test_first_generation_is_mutated_sorted_records(self, config_factory):
        holder = []
        engine = EvolutionEngine(
            config_factory(
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1}))
            )
        )
        holder.append(engine)

        await engine.start()

        # seeded 0..3, sorted high first 3,2,1,0, each mutated +1
        assert engine.generation == [4, 3, 2, 1]
        assert [r.individual for r in engine.last_generation] == [3, 2, 1, 0]
        assert [r.fitness for r in engine.fitness] == [4.0, 3.0, 2.0, 1.0]

    @pytest.mark.asyncio
    async def test_hook_order_for_one_step(self, config_factory):
        events = []
        holder = []

        def before_next(info):
            events.append(("before_next_generation", info.generation_num))
            holder[0].pause()

        callbacks = EngineCallbacks(
            before_next_generation=before_next,
            after_next_generation=lambda info: events.append(
                ("after_next_generation", info.generation_num)
            ),
            before_generation_fitness_evaluated=lambda info: events.append(
                ("before_generation_fitness_evaluated", info.generation_num)
            ),
            after_generation_fitness_evaluated=lambda info: events.append(
                ("after_generation_fitness_evaluated", info.generation_num)
            ),
            before_fitness_evaluated=lambda ind: events.append(("before_fitness", ind)),
            after_fitness_evaluated=lambda ind, score: events.append(("after_fitness", ind)),
        )
        engine = EvolutionEngine(config_factory(callbacks=callbacks))
        holder.append(engine)

        await engine.start()

        per_individual = lambda gen: [
            e for ind in gen for e in (("before_fitness", ind), ("after_fitness", ind))
        ]
        assert events == (
            per_individual([0, 1, 2, 3])
            + [
                ("before_next_generation", 0),
                ("after_next_generation", 1),
                ("before_generation_fitness_evaluated", 1),
            ]
            + per_individual([4, 3, 2, 1])
            + [("after_generation_fitness_evaluated", 1)]
        )

    @pytest.mark.asyncio
    async def test_invalid_config_fails_before_generating(self, config_factory):
        generated = []

        def generate():
            generated.append(1)
            return 0

        engine = EvolutionEngine(config_factory(population_size=0, generate=generate))

        with pytest.raises(ConfigurationError):
            await engine.start()

        assert generated == []
        assert engine.state == EngineState.FAILED

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, config_factory):
        holder = []
        engine = EvolutionEngine(
            config_factory(
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1}))
            )
        )
        holder.append(engine)
        await engine.start()

        with pytest.raises(EvolutionError):
            await engine.start()


class TestPauseResume:
    @pytest.mark.asyncio
    async def test_generation_counter_continues_after_resume(self, config_factory):
        seen = []
        holder = []
        engine = EvolutionEngine(
            config_factory(
                callbacks=EngineCallbacks(
                    after_generation_fitness_evaluated=pause_at(holder, {2, 5}, seen)
                )
            )
        )
        holder.append(engine)

        await engine.start()
        assert engine.generation_num == 2
        assert engine.state == EngineState.PAUSED

        await engine.resume()

        assert seen == [1, 2, 3, 4, 5]
        assert engine.generation_num == 5
        assert engine.metrics.total_generations == 5

    @pytest.mark.asyncio
    async def test_resume_while_looping_does_not_start_second_loop(self, config_factory):
        seen = []
        holder = []

        async def fitness(ind):
            await asyncio.sleep(0)
            return float(ind)

        engine = EvolutionEngine(
            config_factory(
                fitness=fitness,
                callbacks=EngineCallbacks(
                    after_generation_fitness_evaluated=pause_at(holder, {1, 3}, seen)
                ),
            )
        )
        holder.append(engine)
        await engine.start()

        await asyncio.gather(engine.resume(), engine.resume())

        assert seen == [1, 2, 3]
        assert engine.generation_num == 3
        assert engine.state == EngineState.PAUSED

    @pytest.mark.asyncio
    async def test_pause_from_timer_stops_synchronous_run(self, config_factory):
        engine = EvolutionEngine(config_factory())
        asyncio.get_running_loop().call_later(0.01, engine.pause)

        await asyncio.wait_for(engine.start(), timeout=5)

        assert engine.state == EngineState.PAUSED
        assert engine.generation_num >= 1
        assert not engine.is_running()

    @pytest.mark.asyncio
    async def test_rearm_during_final_step_keeps_loop(self, config_factory):
        holder = []
        rearmed = []

        def hook(info):
            if info.generation_num == 2:
                holder[0].pause()
                rearmed.append(holder[0].rearm())
            elif info.generation_num == 4:
                holder[0].pause()

        engine = EvolutionEngine(
            config_factory(callbacks=EngineCallbacks(after_generation_fitness_evaluated=hook))
        )
        holder.append(engine)

        await engine.start()

        assert rearmed == [True]
        assert engine.generation_num == 4
        assert engine.state == EngineState.PAUSED

    @pytest.mark.asyncio
    async def test_rearm_rejected_before_start(self, config_factory):
        with pytest.raises(EvolutionError):
            EvolutionEngine(config_factory()).rearm()

    @pytest.mark.asyncio
    async def test_resume_before_start_rejected(self, config_factory):
        engine = EvolutionEngine(config_factory())

        with pytest.raises(EvolutionError):
            await engine.resume()

    @pytest.mark.asyncio
    async def test_async_hook_can_pause(self, config_factory):
        holder = []

        async def hook(info):
            await asyncio.sleep(0)
            holder[0].pause()

        engine = EvolutionEngine(
            config_factory(callbacks=EngineCallbacks(after_generation_fitness_evaluated=hook))
        )
        holder.append(engine)

        await engine.start()

        assert engine.generation_num == 1


class TestCustomStrategies:
    @pytest.mark.asyncio
    async def test_wrong_population_size_is_fatal(self, config_factory):
        engine = EvolutionEngine(
            config_factory(
                reproduction=CustomMutateReproduction(
                    mutate=lambda records: [r.individual for r in records][:-1]
                )
            )
        )

        with pytest.raises(PopulationSizeError):
            await engine.start()

        assert engine.generation_num == 0
        assert engine.generation == [0, 1, 2, 3]
        assert engine.state == EngineState.FAILED
        with pytest.raises(EngineDefunctError):
            await engine.resume()
        with pytest.raises(EngineDefunctError):
            await engine.start()

    @pytest.mark.asyncio
    async def test_custom_breed_fires_hook(self, config_factory):
        breed_calls = []
        holder = []

        engine = EvolutionEngine(
            config_factory(
                reproduction=CustomBreedReproduction(
                    breed=lambda records: [r.individual * 10 for r in records]
                ),
                callbacks=EngineCallbacks(
                    on_custom_breed=lambda info: breed_calls.append(info.generation_num),
                    after_generation_fitness_evaluated=pause_at(holder, {1}),
                ),
            )
        )
        holder.append(engine)

        await engine.start()

        assert breed_calls == [0]
        assert engine.generation == [30, 20, 10, 0]

    @pytest.mark.asyncio
    async def test_custom_breed_hook_sees_generation_before_replacement(
        self, config_factory
    ):
        hook_generations = []
        breed_inputs = []
        holder = []

        def breed(records):
            breed_inputs.append([r.individual for r in records])
            return [r.individual for r in records]

        engine = EvolutionEngine(
            config_factory(
                kill_worst_fraction=0.75,
                reproduction=CustomBreedReproduction(breed=breed),
                callbacks=EngineCallbacks(
                    on_custom_breed=lambda info: hook_generations.append(info.generation),
                    after_generation_fitness_evaluated=pause_at(holder, {1}),
                ),
            )
        )
        holder.append(engine)

        await engine.start()

        assert hook_generations == [[0, 1, 2, 3]]
        assert breed_inputs == [[3, 3, 2, 1]]

    @pytest.mark.asyncio
    async def test_kill_worst_feeds_replaced_records(self, config_factory):
        received = []
        holder = []

        def mutate(records):
            received.append([r.individual for r in records])
            return [r.individual for r in records]

        engine = EvolutionEngine(
            config_factory(
                kill_worst_fraction=0.75,
                reproduction=CustomMutateReproduction(mutate=mutate),
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1})),
            )
        )
        holder.append(engine)

        await engine.start()

        assert received == [[3, 3, 2, 1]]
        assert engine.generation == [3, 3, 2, 1]


class TestAutoReproduction:
    @pytest.mark.asyncio
    async def test_breed_pairs_are_circular(self, config_factory):
        pairs = []
        holder = []

        def breed(a, b):
            pairs.append((a.individual, b.individual))
            return a.individual

        engine = EvolutionEngine(
            config_factory(
                reproduction=AutoReproduction(breeds=[WeightedBreed(probability=1.0, breed=breed)]),
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1})),
            )
        )
        holder.append(engine)

        await engine.start()

        assert pairs == [(3, 2), (2, 1), (1, 0), (0, 3)]

    @pytest.mark.asyncio
    async def test_operator_chosen_per_draw(self, config_factory, scripted_random):
        holder = []
        settings = AutoReproduction(
            mutations=[
                WeightedMutation(probability=0.5, mutate=lambda ind, fit: ind + 100),
                WeightedMutation(probability=0.5, mutate=lambda ind, fit: ind - 100),
            ]
        )
        engine = EvolutionEngine(
            config_factory(
                reproduction=settings,
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1})),
            ),
            rng=scripted_random([0.1, 0.9, 0.5, 0.49]),
        )
        holder.append(engine)

        await engine.start()

        assert engine.generation == [103, -98, -99, 100]

    @pytest.mark.asyncio
    async def test_uncovered_draw_is_selection_error(self, config_factory, scripted_random):
        settings = AutoReproduction(
            mutations=[
                WeightedMutation(probability=0.3, mutate=lambda ind, fit: ind),
                WeightedMutation(probability=0.7 - 1e-12, mutate=lambda ind, fit: ind),
            ]
        )
        engine = EvolutionEngine(
            config_factory(reproduction=settings),
            rng=scripted_random([0.9999999999995]),
        )

        with pytest.raises(OperatorSelectionError) as exc_info:
            await engine.start()

        assert not isinstance(exc_info.value, ConfigurationError)
        assert engine.state == EngineState.FAILED


class TestFailures:
    @pytest.mark.asyncio
    async def test_fitness_error_is_wrapped(self, config_factory):
        def fitness(ind):
            if ind == 2:
                raise ValueError("bad individual")
            return float(ind)

        engine = EvolutionEngine(config_factory(fitness=fitness))

        with pytest.raises(EvolutionError) as exc_info:
            await engine.start()

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert engine.state == EngineState.FAILED
        assert not engine.is_running()

    @pytest.mark.asyncio
    async def test_hook_error_is_fatal(self, config_factory):
        def hook(info):
            raise RuntimeError("hook broke")

        engine = EvolutionEngine(
            config_factory(callbacks=EngineCallbacks(after_next_generation=hook))
        )

        with pytest.raises(EvolutionError):
            await engine.start()

        assert engine.generation_num == 1
        assert engine.state == EngineState.FAILED


class TestIntrospection:
    @pytest.mark.asyncio
    async def test_hook_snapshot_is_a_copy(self, config_factory):
        holder = []

        def hook(info):
            info.generation.clear()
            info.fitness.clear()
            holder[0].pause()

        engine = EvolutionEngine(
            config_factory(callbacks=EngineCallbacks(after_generation_fitness_evaluated=hook))
        )
        holder.append(engine)

        await engine.start()

        assert len(engine.generation) == 4
        assert len(engine.fitness) == 4

    @pytest.mark.asyncio
    async def test_get_status(self, config_factory):
        holder = []
        engine = EvolutionEngine(
            config_factory(
                callbacks=EngineCallbacks(after_generation_fitness_evaluated=pause_at(holder, {1}))
            )
        )
        holder.append(engine)

        idle = await engine.get_status()
        assert idle["state"] == "idle"

        await engine.start()
        status = await engine.get_status()

        assert status["state"] == "paused"
        assert status["running"] is False
        assert status["generation_num"] == 1
        assert status["total_generations"] == 1
        assert status["individuals_evaluated"] == 8
        assert status["best_fitness"] == 4.0
        assert status["mean_fitness"] == 2.5

    def test_metrics_reject_unknown_fields(self):
        with pytest.raises(pydantic.ValidationError):
            EngineMetrics(total_generation=3)
